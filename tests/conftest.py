"""
Pytest configuration and fixtures
"""

import asyncio
import csv
import io
import json
import re
import time
from typing import Any, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from jose import jwt

from client.http import APIClient
from console import Console

BASE_URL = "http://testserver"
PREFIX = "/api/v1"
JWT_SECRET = "test-secret"


def make_token(user_id: str, expires_in: int = 3600, now: Optional[float] = None) -> str:
    """Signed JWT carrying user_id and exp, like the backend issues"""
    now = time.time() if now is None else now
    return jwt.encode(
        {"user_id": user_id, "exp": int(now + expires_in), "iat": int(now)},
        JWT_SECRET,
        algorithm="HS256"
    )


def _json(status: int, payload: Any) -> httpx.Response:
    return httpx.Response(status, json=payload)


def parse_multipart(request: httpx.Request) -> Dict[str, Any]:
    """name -> (filename, bytes) for every part of a multipart body"""
    boundary = request.headers["content-type"].split("boundary=", 1)[1].strip('"').encode()
    parts = {}
    for chunk in request.content.split(b"--" + boundary):
        chunk = chunk.strip(b"\r\n")
        if not chunk or chunk == b"--":
            continue
        head, _, body = chunk.partition(b"\r\n\r\n")
        disposition = head.decode()
        name = re.search(r' name="([^"]*)"', disposition).group(1)
        filename = re.search(r'filename="([^"]*)"', disposition)
        parts[name] = (filename.group(1) if filename else None, body)
    return parts


class FakeBackend:
    """
    In-memory transaction-matching backend served through httpx.MockTransport.

    Attributes:
        calls: (method, path, params) of every request received
        process_requests: JSON bodies posted to /uploads/process
    """

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.passwords: Dict[str, tuple] = {}
        self.valid_tokens = set()
        self.data_sources: Dict[str, Dict[str, Any]] = {}
        self.imports: Dict[str, Dict[str, Any]] = {}
        self.raw_transactions: Dict[str, Dict[str, Any]] = {}
        self.previews: Dict[str, List[List[str]]] = {}
        self.tenants: Dict[str, Dict[str, Any]] = {
            "t-1": {"id": "t-1", "name": "Acme", "domain": "acme.example.com", "primaryColor": "#003366"},
        }
        self.current_tenant_id = "t-1"
        self.calls: List[tuple] = []
        self.headers: List[Dict[str, str]] = []
        self.process_requests: List[Dict[str, Any]] = []
        self.inline_preview = False
        self.suggested_mappings: Optional[Dict[str, int]] = None
        self.expires_in = 3600
        self._failures: List[Dict[str, Any]] = []
        self._gates: List[tuple] = []
        self._ids = 0

        self.add_user("u-1", "ops@example.com", "secret1", name="Ops", roles=["user"])

    # ------------------------------------------------------------------
    # Test controls
    # ------------------------------------------------------------------

    def add_user(self, user_id, email, password, name="", roles=None):
        self.users[user_id] = {
            "user": {"id": user_id, "email": email, "name": name},
            "roles": list(roles or []),
        }
        self.passwords[email] = (password, user_id)

    def issue_token(self, user_id: str) -> str:
        token = make_token(user_id, self.expires_in)
        self.valid_tokens.add(token)
        return token

    def fail(self, method, path, status=500, body=None, times=None, transport=False):
        """Answer matching requests with an error (or a connection failure)"""
        self._failures.append({
            "method": method,
            "path": path,
            "status": status,
            "body": body if body is not None else {"error": "boom"},
            "times": times,
            "transport": transport,
        })

    def clear_failures(self):
        self._failures.clear()

    def gate(self, method, path, **params) -> asyncio.Event:
        """Hold matching requests until the returned event is set"""
        event = asyncio.Event()
        self._gates.append((method, path, params, event))
        return event

    def count(self, method, path, **params) -> int:
        return sum(
            1 for m, p, q in self.calls
            if m == method and p == path and all(q.get(k) == str(v) for k, v in params.items())
        )

    def add_import(self, data_source_id, status="Completed", file_name="bank.csv", rows=None):
        import_id = self._next_id("imp")
        rows = rows or []
        self.imports[import_id] = {
            "id": import_id,
            "dataSourceId": data_source_id,
            "fileName": file_name,
            "fileSize": 2048,
            "status": status,
            "rowCount": len(rows),
            "successCount": len(rows) if status == "Completed" else 0,
            "errorCount": 0,
            "importedBy": "u-1",
            "createdAt": "2024-01-15T10:00:00Z",
            "updatedAt": "2024-01-15T10:00:00Z",
        }
        for number, data in enumerate(rows, start=1):
            tx_id = self._next_id("tx")
            self.raw_transactions[tx_id] = {
                "id": tx_id,
                "importId": import_id,
                "dataSourceId": data_source_id,
                "rowNumber": number,
                "data": data,
                "createdAt": "2024-01-15T10:00:00Z",
            }
        return import_id

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def handle(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        method = request.method
        path = request.url.path
        params = dict(request.url.params)
        self.calls.append((method, path, params))
        self.headers.append(dict(request.headers))

        for m, p, wanted, event in self._gates:
            if m == method and p == path and all(params.get(k) == str(v) for k, v in wanted.items()):
                await event.wait()

        for failure in self._failures:
            if failure["method"] == method and failure["path"] == path and failure["times"] != 0:
                if failure["times"] is not None:
                    failure["times"] -= 1
                if failure["transport"]:
                    raise httpx.ConnectError("Connection refused", request=request)
                return _json(failure["status"], failure["body"])

        if path == "/health":
            return _json(200, {"status": "ok"})
        if not path.startswith(PREFIX):
            return _json(404, {"error": "not found"})
        route = path[len(PREFIX):]

        if method == "POST" and route == "/auth/login":
            return self._login(json.loads(request.content))
        if method == "POST" and route == "/auth/register":
            return self._register(json.loads(request.content))

        token = request.headers.get("authorization", "").replace("Bearer ", "")
        if token not in self.valid_tokens:
            return _json(401, {"error": "invalid or expired token"})
        user_id = jwt.get_unverified_claims(token)["user_id"]

        parts = route.strip("/").split("/")
        body = json.loads(request.content) if request.content and "json" in request.headers.get("content-type", "") else None

        if parts == ["auth", "token-info"]:
            return _json(200, {"token": self.issue_token(user_id), "expires_in": self.expires_in})
        if parts[0] == "datasources":
            return self._datasources(method, parts, params, body)
        if parts[0] == "imports":
            return self._imports(method, parts, params)
        if parts[0] == "raw-transactions":
            tx = self.raw_transactions.get(parts[1])
            return _json(200, tx) if tx else _json(404, {"error": "not found"})
        if parts[0] == "uploads":
            return self._uploads(method, parts, params, request, body)
        if parts[0] == "users":
            return self._users(method, parts, body)
        if parts[0] == "tenants":
            return self._tenants(method, parts, body, request)
        return _json(404, {"error": "not found"})

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def _auth_response(self, user_id):
        return _json(200, {
            "token": self.issue_token(user_id),
            "user": {**self.users[user_id]["user"], "authProvider": "local"},
            "expires_in": self.expires_in,
        })

    def _login(self, body):
        password, user_id = self.passwords.get(body.get("email"), (None, None))
        if password is None or password != body.get("password"):
            return _json(401, {"error": "invalid credentials"})
        return self._auth_response(user_id)

    def _register(self, body):
        if body["email"] in self.passwords:
            return _json(409, {"error": "email already registered"})
        user_id = self._next_id("u")
        self.add_user(user_id, body["email"], body["password"], name=body["name"], roles=["user"])
        return self._auth_response(user_id)

    def _datasources(self, method, parts, params, body):
        if parts == ["datasources"] and method == "GET":
            return _json(200, list(self.data_sources.values()))
        if parts == ["datasources"] and method == "POST":
            ds_id = self._next_id("ds")
            now = int(time.time() * 1000)
            self.data_sources[ds_id] = {"id": ds_id, **body, "created_at": now, "updated_at": now}
            return _json(201, self.data_sources[ds_id])
        if parts == ["datasources", "search"]:
            q = params.get("q", "").lower()
            limit, offset = int(params.get("limit", 10)), int(params.get("offset", 0))
            found = [d for d in self.data_sources.values() if q in d["name"].lower()]
            page = found[offset:offset + limit]
            return _json(200, {
                "data": page,
                "pagination": {
                    "total": len(found), "limit": limit, "offset": offset,
                    "hasMore": offset + len(page) < len(found),
                },
            })

        ds = self.data_sources.get(parts[1])
        if ds is None:
            return _json(404, {"error": "data source not found"})
        if len(parts) == 3 and parts[2] == "imports":
            records = [r for r in self.imports.values() if r["dataSourceId"] == ds["id"]]
            return self._page(records, params)
        if method == "GET":
            return _json(200, ds)
        if method == "PUT":
            ds.update(body)
            ds["updated_at"] = int(time.time() * 1000)
            return _json(200, ds)
        if method == "DELETE":
            del self.data_sources[ds["id"]]
            return httpx.Response(204)
        return _json(405, {"error": "method not allowed"})

    def _imports(self, method, parts, params):
        record = self.imports.get(parts[1])
        if record is None:
            return _json(404, {"error": "import not found"})
        if len(parts) == 3 and parts[2] == "raw-transactions":
            rows = [t for t in self.raw_transactions.values() if t["importId"] == record["id"]]
            return self._page(rows, params)
        if method == "DELETE":
            if record["status"] == "Processing":
                return _json(409, {"error": "import is still processing"})
            del self.imports[record["id"]]
            return _json(200, {"message": "deleted"})
        return _json(200, record)

    def _uploads(self, method, parts, params, request, body):
        if parts == ["uploads", "preview"]:
            form = parse_multipart(request)
            filename, content = form["file"]
            rows = list(csv.reader(io.StringIO(content.decode("utf-8"))))
            preview_url = f"previews/{self._next_id('pv')}/{filename}"
            self.previews[preview_url] = rows
            response = {"previewUrl": preview_url, "columns": rows[0] if rows else []}
            if self.inline_preview:
                response["preview"] = rows[:6]
            if self.suggested_mappings is not None:
                response["suggestedMappings"] = self.suggested_mappings
            return _json(200, response)
        if parts == ["uploads", "preview-data"]:
            rows = self.previews.get(params.get("url"))
            if rows is None:
                return _json(404, {"error": "preview not found"})
            return _json(200, {"data": rows[:6]})
        if parts == ["uploads", "process"]:
            self.process_requests.append(body)
            rows = self.previews.get(body["previewUrl"], [])
            import_id = self.add_import(body["dataSourceId"], status="Processing", file_name=body["filename"])
            self.imports[import_id]["rowCount"] = max(0, len(rows) - 1)
            return _json(200, {"importId": import_id, "status": "Processing"})
        return _json(404, {"error": "not found"})

    def _users(self, method, parts, body):
        if parts == ["users"] and method == "GET":
            return _json(200, [u["user"] for u in self.users.values()])
        if parts == ["users"] and method == "POST":
            user_id = self._next_id("u")
            self.add_user(user_id, body["email"], body["password"], name=body["name"], roles=[body["role"]])
            return _json(201, self.users[user_id])
        user = self.users.get(parts[1])
        if user is None:
            return _json(404, {"error": "user not found"})
        if len(parts) == 3 and parts[2] == "roles":
            if method == "PUT":
                if body["operation"] == "add" and body["role"] not in user["roles"]:
                    user["roles"].append(body["role"])
                elif body["operation"] == "remove":
                    user["roles"] = [r for r in user["roles"] if r != body["role"]]
            return _json(200, {"roles": user["roles"]})
        return _json(200, user)

    def _tenants(self, method, parts, body, request):
        if parts == ["tenants", "current"]:
            return _json(200, self.tenants[self.current_tenant_id])
        if len(parts) == 3 and parts[1] == "domain":
            for tenant in self.tenants.values():
                if tenant.get("domain") == parts[2]:
                    return _json(200, tenant)
            return _json(404, {"error": "tenant not found"})
        tenant = self.tenants.get(parts[1])
        if tenant is None:
            return _json(404, {"error": "tenant not found"})
        if len(parts) == 3 and parts[2] == "logo":
            filename, _ = parse_multipart(request)["logo"]
            tenant["logoUrl"] = f"/static/logos/{filename}"
            return _json(200, {"logoUrl": tenant["logoUrl"]})
        if method == "PUT":
            tenant.update(body)
        return _json(200, tenant)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _page(self, items, params):
        limit, offset = int(params.get("limit", 10)), int(params.get("offset", 0))
        page = items[offset:offset + limit]
        return _json(200, {
            "data": page,
            "pagination": {
                "total": len(items), "limit": limit, "offset": offset,
                "hasMore": offset + len(page) < len(items),
            },
        })

    def _next_id(self, prefix):
        self._ids += 1
        return f"{prefix}-{self._ids}"


class FakeClock:
    """Controllable replacement for time.time"""

    def __init__(self, start: Optional[float] = None):
        self.now = time.time() if start is None else start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def wait_for(predicate, attempts: int = 200):
    """Yield to the event loop until predicate() holds"""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def transport(backend):
    return httpx.MockTransport(backend.handle)


@pytest.fixture
def credential_path(tmp_path):
    return str(tmp_path / "credentials.json")


@pytest_asyncio.fixture
async def console(transport, credential_path):
    """Console against the fake backend; GET retried once, no backoff"""
    app = Console(
        base_url=BASE_URL,
        credential_path=credential_path,
        transport=transport,
        max_retries=2,
        retry_delay=0
    )
    yield app
    await app.aclose()


@pytest_asyncio.fixture
async def logged_in(console):
    await console.session.login("ops@example.com", "secret1")
    return console


@pytest_asyncio.fixture
async def api(transport):
    client = APIClient(base_url=BASE_URL, transport=transport, max_retries=2, retry_delay=0)
    yield client
    await client.aclose()


@pytest.fixture
def bank_schema():
    """Schema whose default mappings name the headers of transactions.csv"""
    return {
        "fields": [
            {"name": "Txn Date", "displayName": "Transaction date", "type": "date", "required": True, "format": "2006-01-02"},
            {"name": "Desc", "displayName": "Description", "type": "string", "required": True},
            {"name": "Amt", "displayName": "Amount", "type": "number", "required": True},
            {"name": "Ref", "displayName": "Reference", "type": "string", "required": False},
        ],
        "dateFormat": "02/01/2006",
        "defaultMappings": {
            "date": "Txn Date",
            "description": "Desc",
            "amount": "Amt",
            "reference": "Ref",
        },
        "requiredFields": ["date", "description", "amount", "reference"],
    }


@pytest.fixture
def transactions_csv():
    return (
        b"Txn Date,Desc,Amt,Ref\n"
        b"02/01/2024,Coffee,3.50,R-001\n"
        b"03/01/2024,Train ticket,12.00,R-002\n"
        b"04/01/2024,Groceries,45.10,R-003\n"
    )
