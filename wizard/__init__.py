"""
CSV import wizard.

Modules:
    mapping: Standard fields and column-mapping derivation
    states: WizardStep, transition guards, UploadFile and WizardContext
    wizard: ImportWizard (select source, upload, preview/map, confirm)
"""

__all__ = [
    "ImportWizard",
    "UploadFile",
    "WizardContext",
    "WizardStep",
    "TRANSITION_GUARDS",
    "STANDARD_REQUIRED_FIELDS",
    "STANDARD_OPTIONAL_FIELDS",
]
