import boto3
import pytest
from botocore.stub import Stubber

from datashelf.exceptions import ObjectNotFoundError, UpstreamError
from datashelf.services.storage import ObjectStorage

pytestmark = pytest.mark.anyio


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-2",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


async def test_head_object(s3_client) -> None:
    storage = ObjectStorage(s3_client)
    with Stubber(s3_client) as stubber:
        stubber.add_response("head_object", {"ContentLength": 42, "ContentType": "text/csv"})
        head = await storage.head_object("datasets", "d1/columns/0")

    assert head["ContentLength"] == 42
    assert head["ContentType"] == "text/csv"
    assert "ResponseMetadata" not in head


async def test_head_missing_object(s3_client) -> None:
    storage = ObjectStorage(s3_client)
    with Stubber(s3_client) as stubber:
        stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)
        with pytest.raises(ObjectNotFoundError):
            await storage.head_object("datasets", "d1/columns/0")


async def test_head_object_upstream_failure(s3_client) -> None:
    storage = ObjectStorage(s3_client)
    with Stubber(s3_client) as stubber:
        stubber.add_client_error("head_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(UpstreamError):
            await storage.head_object("datasets", "d1/columns/0")


async def test_delete_prefix(s3_client) -> None:
    storage = ObjectStorage(s3_client)
    with Stubber(s3_client) as stubber:
        stubber.add_response(
            "list_objects_v2",
            {"Contents": [{"Key": "d1/0"}, {"Key": "d1/columns/0"}], "IsTruncated": False},
        )
        stubber.add_response("delete_objects", {"Deleted": [{"Key": "d1/0"}, {"Key": "d1/columns/0"}]})
        deleted = await storage.delete_prefix("datasets", "d1/")
        stubber.assert_no_pending_responses()

    assert deleted == ["d1/0", "d1/columns/0"]


async def test_delete_empty_prefix(s3_client) -> None:
    storage = ObjectStorage(s3_client)
    with Stubber(s3_client) as stubber:
        stubber.add_response("list_objects_v2", {"IsTruncated": False})
        assert await storage.delete_prefix("datasets", "d1/") == []


async def test_delete_prefix_partial_failure(s3_client) -> None:
    storage = ObjectStorage(s3_client)
    with Stubber(s3_client) as stubber:
        stubber.add_response("list_objects_v2", {"Contents": [{"Key": "d1/0"}], "IsTruncated": False})
        stubber.add_response(
            "delete_objects",
            {"Errors": [{"Key": "d1/0", "Code": "AccessDenied", "Message": "Access Denied"}]},
        )
        with pytest.raises(UpstreamError):
            await storage.delete_prefix("datasets", "d1/")


async def test_delete_prefix_listing_failure(s3_client) -> None:
    storage = ObjectStorage(s3_client)
    with Stubber(s3_client) as stubber:
        stubber.add_client_error("list_objects_v2", service_error_code="InternalError", http_status_code=500)
        with pytest.raises(UpstreamError):
            await storage.delete_prefix("datasets", "d1/")
