import asyncio
import base64
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.main import acta_app as fast_api_app
from app.signatures.images import SignatureImageStorage, get_signature_image_storage
from app.users.utils import get_current_user
from app.utils.s3_utils import S3Utils

from conftest import OTHER_ORG_ID, acta_fields, make_user

PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(b"\x89PNGsignature").decode("ascii")


@pytest.fixture
def acta_id(local_backend):
    return asyncio.run(local_backend.create(acta_fields()))


@pytest.fixture
def issued(client: TestClient, acta_id, notifier):
    response = client.post(f"/actas/{acta_id}/signature-requests", json={})
    assert response.status_code == 200
    return {attendee_id: token for _, attendee_id, token, _ in notifier.sent}


def test_send_signature_requests(client: TestClient, acta_id, notifier):
    response = client.post(f"/actas/{acta_id}/signature-requests")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["sent_count"] == 2
    assert {r["attendee_id"] for r in body["results"]} == {"a1", "a2"}
    assert len(notifier.sent) == 2

    acta = client.get(f"/actas/{acta_id}").json()
    assert acta["status"] == "pending_signatures"
    assert all(a["signature_requested"] for a in acta["attendees"])


def test_send_signature_requests_subset(client: TestClient, acta_id, notifier):
    response = client.post(f"/actas/{acta_id}/signature-requests", json={"attendee_ids": ["a2"]})
    assert response.json()["sent_count"] == 1
    assert [attendee_id for _, attendee_id, _, _ in notifier.sent] == ["a2"]


def test_send_signature_requests_foreign_organization(client: TestClient, acta_id):
    fast_api_app.dependency_overrides[get_current_user] = lambda: make_user(OTHER_ORG_ID, user_id=2)
    response = client.post(f"/actas/{acta_id}/signature-requests")
    assert response.status_code == 403
    assert response.json()["detail"]["kind"] == "permission_denied"


def test_send_signature_requests_unknown_acta(client: TestClient):
    response = client.post("/actas/missing/signature-requests")
    assert response.status_code == 404


def test_verify_token(client: TestClient, acta_id, issued):
    response = client.post("/signatures/verify", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": issued["a1"],
    })
    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert body["attendee"]["name"] == "Ana Pérez"
    assert body["acta"]["title"] == "Comité de Seguridad"


def test_verify_token_does_not_need_login(client: TestClient, acta_id, issued):
    fast_api_app.dependency_overrides.pop(get_current_user)
    response = client.post("/signatures/verify", json={
        "acta_id": acta_id, "attendee_id": "a2", "token": issued["a2"],
    })
    assert response.status_code == 200


@pytest.mark.parametrize("payload, status_code, kind", [
    ({"acta_id": "", "attendee_id": "a1", "token": "x"}, 400, "invalid_argument"),
    ({"acta_id": "missing", "attendee_id": "a1", "token": "x"}, 404, "not_found"),
    ({"attendee_id": "zz", "token": "x"}, 404, "not_found"),
    ({"attendee_id": "a1", "token": "wrong"}, 403, "permission_denied"),
])
def test_verify_token_errors(client: TestClient, acta_id, issued, payload, status_code, kind):
    payload = {"acta_id": acta_id, **payload}
    response = client.post("/signatures/verify", json=payload)
    assert response.status_code == status_code
    assert response.json()["detail"]["kind"] == kind


def test_record_signatures_until_completed(client: TestClient, acta_id, issued):
    first = client.post("/signatures/record", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": issued["a1"], "signature_url": "url-A",
    })
    assert first.status_code == 200
    assert first.json()["all_signed"] is False

    second = client.post("/signatures/record", json={
        "acta_id": acta_id, "attendee_id": "a2", "token": issued["a2"], "signature_url": "url-B",
    })
    assert second.json() == {
        "success": True, "message": "Signature recorded successfully.", "all_signed": True,
    }

    acta = client.get(f"/actas/{acta_id}").json()
    assert acta["status"] == "completed"
    assert acta["completed_at"] is not None

    again = client.post("/signatures/record", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": issued["a1"], "signature_url": "url-A2",
    })
    assert again.status_code == 409
    assert again.json()["detail"]["kind"] == "already_exists"


def test_record_signature_wrong_token(client: TestClient, acta_id, issued):
    response = client.post("/signatures/record", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": issued["a2"], "signature_url": "url-A",
    })
    assert response.status_code == 403


def test_upload_signature_image_without_bucket(client: TestClient, acta_id, issued):
    fast_api_app.dependency_overrides[get_signature_image_storage] = (
        lambda: SignatureImageStorage(s3=_NoBucket())
    )
    response = client.post("/signatures/image", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": issued["a1"],
        "signature_data_url": PNG_DATA_URL,
    })
    assert response.status_code == 201
    assert response.json()["signature_url"] == PNG_DATA_URL


def test_upload_signature_image_requires_valid_token(client: TestClient, acta_id, issued):
    fast_api_app.dependency_overrides[get_signature_image_storage] = (
        lambda: SignatureImageStorage(s3=_NoBucket())
    )
    response = client.post("/signatures/image", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": "wrong",
        "signature_data_url": PNG_DATA_URL,
    })
    assert response.status_code == 403


def test_upload_signature_image_rejects_bad_image(client: TestClient, acta_id, issued):
    fast_api_app.dependency_overrides[get_signature_image_storage] = (
        lambda: SignatureImageStorage(s3=_NoBucket())
    )
    response = client.post("/signatures/image", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": issued["a1"],
        "signature_data_url": "data:text/plain;base64,aGVsbG8=",
    })
    assert response.status_code == 400


class _NoBucket:
    bucket_name = None
    is_configured = False


def _s3_client():
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://s3.example.com/signatures/a1.png?X-Amz-Signature=abc"
    return client


def test_upload_signature_image_rejected_after_signing(client: TestClient, acta_id, issued):
    s3_client = _s3_client()
    fast_api_app.dependency_overrides[get_signature_image_storage] = (
        lambda: SignatureImageStorage(s3=S3Utils(bucket_name="actas-bucket", s3_client=s3_client))
    )
    recorded = client.post("/signatures/record", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": issued["a1"], "signature_url": "url-A",
    })
    assert recorded.status_code == 200

    response = client.post("/signatures/image", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": issued["a1"],
        "signature_data_url": PNG_DATA_URL,
    })

    assert response.status_code == 409
    assert response.json()["detail"]["kind"] == "already_exists"
    s3_client.upload_fileobj.assert_not_called()


def test_upload_signature_image_to_bucket(client: TestClient, acta_id, issued):
    s3_client = _s3_client()
    fast_api_app.dependency_overrides[get_signature_image_storage] = (
        lambda: SignatureImageStorage(s3=S3Utils(bucket_name="actas-bucket", s3_client=s3_client))
    )
    response = client.post("/signatures/image", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": issued["a1"],
        "signature_data_url": PNG_DATA_URL,
    })

    assert response.status_code == 201
    assert response.json() == {
        "signature_url": f"s3://actas-bucket/signatures/{acta_id}/a1.png",
        "preview_url": "https://s3.example.com/signatures/a1.png?X-Amz-Signature=abc",
    }
    s3_client.upload_fileobj.assert_called_once()


def test_get_acta_presigns_stored_signature(client: TestClient, acta_id, issued):
    s3_client = _s3_client()
    fast_api_app.dependency_overrides[get_signature_image_storage] = (
        lambda: SignatureImageStorage(s3=S3Utils(bucket_name="actas-bucket", s3_client=s3_client))
    )
    reference = f"s3://actas-bucket/signatures/{acta_id}/a1.png"
    client.post("/signatures/record", json={
        "acta_id": acta_id, "attendee_id": "a1", "token": issued["a1"], "signature_url": reference,
    })

    acta = client.get(f"/actas/{acta_id}").json()

    signer = next(a for a in acta["attendees"] if a["id"] == "a1")
    assert signer["signature_url"] == "https://s3.example.com/signatures/a1.png?X-Amz-Signature=abc"
    assert s3_client.generate_presigned_url.call_args.kwargs["Params"] == {
        "Bucket": "actas-bucket", "Key": f"signatures/{acta_id}/a1.png",
    }
