"""ParameterStoreBackend against moto's Parameter Store."""

import boto3
import pytest
from moto import mock_aws

from envsec.domain.env_id import EnvironmentID
from envsec.infra.addressing import SSMConfig
from envsec.infra.parameter_store import ParameterStoreBackend

ENV_ID = EnvironmentID(org_id="org_moto", project_id="proj_moto", env_name="dev")


@pytest.fixture
def ssm_store(mock_logger):
    """Store on a mocked SSM endpoint."""
    with mock_aws():
        client = boto3.client("ssm", region_name="us-east-1")
        yield ParameterStoreBackend(SSMConfig(region="us-east-1"), client=client, logger=mock_logger)


def test_round_trip(ssm_store):
    """Test values survive a real put/get cycle, including edge values."""
    values = {"PLAIN": "hello", "EMPTY": "", "BIG": "y" * 4096}
    ssm_store.set_all(ENV_ID, values)

    for name, value in values.items():
        assert ssm_store.get(ENV_ID, name) == value


def test_overwrite(ssm_store):
    """Test setting an existing name overwrites it."""
    ssm_store.set(ENV_ID, "TOKEN", "v1")
    ssm_store.set(ENV_ID, "TOKEN", "v2")

    assert ssm_store.get(ENV_ID, "TOKEN") == "v2"


def test_list_and_delete(ssm_store):
    """Test listing by path and deleting in batches."""
    names = [f"var{i}" for i in range(1, 13)]
    ssm_store.set_all(ENV_ID, {name: name.upper() for name in names})

    listed = ssm_store.list(ENV_ID)
    assert [e.name for e in listed] == names
    assert listed[0].value == "VAR1"

    ssm_store.delete_all(ENV_ID, names)
    assert ssm_store.list(ENV_ID) == []


def test_list_spans_several_pages(ssm_store):
    """Test listing collects every page of a large environment."""
    names = [f"KEY_{i:02d}" for i in range(35)]
    ssm_store.set_all(ENV_ID, {name: "v" for name in names})

    assert [e.name for e in ssm_store.list(ENV_ID)] == names
