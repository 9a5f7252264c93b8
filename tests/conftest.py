"""Pytest configuration and fixtures."""

import os
from collections import defaultdict
from typing import Any, Callable, Dict, Iterator, List, Optional

import pytest
from botocore.exceptions import ClientError

# Set test environment variables
os.environ["AWS_ACCESS_KEY_ID"] = "test"
os.environ["AWS_SECRET_ACCESS_KEY"] = "test"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ.pop("AWS_ENDPOINT_URL", None)
os.environ.pop("ENVSEC_XRAY_ENABLED", None)


def make_client_error(code: str, message: str = "", operation: str = "Operation") -> ClientError:
    """Build a botocore ClientError."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakePaginator:
    """Follows NextToken across calls of a FakeSSM operation, like a botocore paginator."""

    def __init__(self, operation: Callable[..., Dict[str, Any]]):
        self.operation = operation

    def paginate(self, **kwargs: Any) -> Iterator[Dict[str, Any]]:
        while True:
            page = self.operation(**kwargs)
            yield page
            next_token = page.get("NextToken")
            if not next_token:
                return
            kwargs["NextToken"] = next_token


class FakeSSM:
    """In-memory SSM client recording every call.

    ``fail(operation, call_number, error)`` makes the n-th call (1-based) of an
    operation raise instead of running.
    """

    MAX_BATCH = 10

    def __init__(self, page_size: int = 10):
        self.page_size = page_size
        self.parameters: Dict[str, Dict[str, Any]] = {}
        self.calls: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self._failures: Dict[str, Dict[int, Exception]] = defaultdict(dict)

    def fail(self, operation: str, call_number: int, error: Exception) -> None:
        self._failures[operation][call_number] = error

    def total_calls(self) -> int:
        return sum(len(c) for c in self.calls.values())

    def get_paginator(self, operation: str) -> FakePaginator:
        return FakePaginator(getattr(self, operation))

    def _record(self, operation: str, kwargs: Dict[str, Any]) -> None:
        self.calls[operation].append(kwargs)
        error = self._failures[operation].get(len(self.calls[operation]))
        if error is not None:
            raise error

    def _page(self, items: List[Dict[str, Any]], token: Optional[str]) -> Dict[str, Any]:
        start = int(token or 0)
        end = start + self.page_size
        response: Dict[str, Any] = {"Parameters": items[start:end]}
        if end < len(items):
            response["NextToken"] = str(end)
        return response

    def put_parameter(self, **kwargs: Any) -> Dict[str, Any]:
        self._record("put_parameter", kwargs)
        name = kwargs["Name"]
        overwrite = kwargs.get("Overwrite", False)
        if name in self.parameters and not overwrite:
            raise make_client_error("ParameterAlreadyExists", "The parameter already exists.", "PutParameter")
        if overwrite and kwargs.get("Tags"):
            raise make_client_error("ValidationException", "Tags and overwrite can't be used together.")
        if kwargs["Value"] == "":
            raise make_client_error("ValidationException", "Value must not be empty.")
        tags = kwargs.get("Tags") or self.parameters.get(name, {}).get("Tags", [])
        self.parameters[name] = {"Value": kwargs["Value"], "Type": kwargs.get("Type"), "Tags": tags}
        return {"Version": 1}

    def get_parameters(self, Names: List[str], WithDecryption: bool = False) -> Dict[str, Any]:
        self._record("get_parameters", {"Names": Names, "WithDecryption": WithDecryption})
        if len(Names) > self.MAX_BATCH:
            raise make_client_error("ValidationException", "Too many names")
        return {
            "Parameters": [
                {"Name": n, "Value": self.parameters[n]["Value"]} for n in Names if n in self.parameters
            ],
            "InvalidParameters": [n for n in Names if n not in self.parameters],
        }

    def get_parameters_by_path(
        self,
        Path: str,
        Recursive: bool = False,
        WithDecryption: bool = False,
        NextToken: Optional[str] = None,
    ) -> Dict[str, Any]:
        self._record("get_parameters_by_path", {"Path": Path, "NextToken": NextToken})
        prefix = Path.rstrip("/") + "/"
        names = sorted(
            n
            for n in self.parameters
            if n.startswith(prefix) and (Recursive or "/" not in n[len(prefix):])
        )
        return self._page([{"Name": n, "Value": self.parameters[n]["Value"]} for n in names], NextToken)

    def describe_parameters(
        self,
        ParameterFilters: List[Dict[str, Any]],
        NextToken: Optional[str] = None,
    ) -> Dict[str, Any]:
        self._record("describe_parameters", {"ParameterFilters": ParameterFilters, "NextToken": NextToken})

        def matches(name: str) -> bool:
            tags = {t["Key"]: t["Value"] for t in self.parameters[name]["Tags"]}
            for f in ParameterFilters:
                if f["Key"] == "Path":
                    if not name.startswith(f["Values"][0].rstrip("/") + "/"):
                        return False
                elif f["Key"].startswith("tag:"):
                    if tags.get(f["Key"][4:]) not in f["Values"]:
                        return False
            return True

        names = sorted(n for n in self.parameters if matches(n))
        return self._page([{"Name": n} for n in names], NextToken)

    def delete_parameters(self, Names: List[str]) -> Dict[str, Any]:
        self._record("delete_parameters", {"Names": Names})
        if len(Names) > self.MAX_BATCH:
            raise make_client_error("ValidationException", "Too many names")
        deleted = [n for n in Names if self.parameters.pop(n, None) is not None]
        return {
            "DeletedParameters": deleted,
            "InvalidParameters": [n for n in Names if n not in deleted],
        }


@pytest.fixture
def client_error() -> Callable[..., ClientError]:
    """Factory for botocore ClientErrors."""
    return make_client_error


@pytest.fixture
def fake_ssm():
    """In-memory SSM client."""
    return FakeSSM()


@pytest.fixture
def mock_logger():
    """Mock logger."""
    from unittest.mock import Mock

    logger = Mock()
    logger.debug.return_value = None
    logger.info.return_value = None
    logger.error.return_value = None
    logger.warning.return_value = None
    return logger
