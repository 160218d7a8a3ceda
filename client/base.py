"""
Base class for backend service wrappers
"""

from typing import Any, Type, TypeVar
from pydantic import BaseModel, ValidationError
from client.http import APIClient, BODY_EXCERPT_LENGTH
from core.exceptions import ResponseShapeError
import json
import logging

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class BaseService:
    """
    Shared plumbing for the service wrappers.

    Responsibilities:
    - Hold the shared APIClient
    - Turn decoded JSON into typed models
    - Report data-shape failures with the offending payload
    """

    def __init__(self, api: APIClient):
        self.api = api

    @staticmethod
    def parse(model: Type[M], payload: Any, endpoint: str) -> M:
        """
        Validate a decoded payload against a model.

        Raises:
            ResponseShapeError: payload is missing fields or has the wrong types
        """
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            try:
                body = json.dumps(payload, default=str)
            except (TypeError, ValueError):
                body = repr(payload)
            logger.error(f"Unexpected response shape from {endpoint}: {e.error_count()} error(s)")
            raise ResponseShapeError(
                f"Unexpected response from {endpoint}",
                context={
                    "endpoint": endpoint,
                    "field_errors": [
                        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                    ],
                    "response_body": body[:BODY_EXCERPT_LENGTH]
                },
                original_exception=e
            )

    @classmethod
    def parse_list(cls, model: Type[M], payload: Any, endpoint: str) -> list:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ResponseShapeError(
                f"Expected a list from {endpoint}",
                context={"endpoint": endpoint, "response_body": str(payload)[:BODY_EXCERPT_LENGTH]}
            )
        return [cls.parse(model, item, endpoint) for item in payload]
