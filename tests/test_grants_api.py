"""Tests for grant listing and the patient access check."""

from src.models.user import UserRole
from src.services.grants import accept_token
from src.services.share_tokens import create_token, deactivate_token


async def _share(token_repo, grant_repo, owner, recipient, label="Follow-up"):
    token, secret = await create_token(token_repo, owner.id, label)
    await accept_token(token_repo, grant_repo, secret, recipient.id)
    return token


class TestListGrants:
    async def test_recipient_sees_live_grants(
        self, client, token_repo, grant_repo, patient, doctor, headers_for
    ):
        token = await _share(token_repo, grant_repo, patient, doctor)

        response = await client.get("/api/grants", headers=headers_for(doctor))

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        item = data["grants"][0]
        assert item["token_id"] == str(token.id)
        assert item["sharer_id"] == str(patient.id)
        assert item["sharer_name"] == "Alice Martin"
        assert item["label"] == "Follow-up"

    async def test_deactivated_share_disappears(
        self, client, token_repo, grant_repo, patient, doctor, headers_for
    ):
        token = await _share(token_repo, grant_repo, patient, doctor)
        await deactivate_token(token_repo, token.id, patient.id, UserRole.PATIENT)

        response = await client.get("/api/grants", headers=headers_for(doctor))

        assert response.json() == {"grants": [], "count": 0}

    async def test_other_recipient_forbidden(
        self, client, doctor, other_doctor, headers_for
    ):
        response = await client.get(
            "/api/grants",
            params={"recipient_id": str(doctor.id)},
            headers=headers_for(other_doctor),
        )
        assert response.status_code == 403

    async def test_admin_lists_for_recipient(
        self, client, token_repo, grant_repo, patient, doctor, admin, headers_for
    ):
        await _share(token_repo, grant_repo, patient, doctor)

        response = await client.get(
            "/api/grants",
            params={"recipient_id": str(doctor.id)},
            headers=headers_for(admin),
        )

        assert response.status_code == 200
        assert response.json()["count"] == 1


class TestAccessCheck:
    async def test_owner_allowed(self, client, patient, headers_for):
        response = await client.get(
            f"/api/access/{patient.id}", headers=headers_for(patient)
        )

        assert response.status_code == 200
        assert response.json() == {"owner_id": str(patient.id), "allowed": True}

    async def test_doctor_with_grant_allowed(
        self, client, token_repo, grant_repo, patient, doctor, headers_for
    ):
        await _share(token_repo, grant_repo, patient, doctor)

        response = await client.get(
            f"/api/access/{patient.id}", headers=headers_for(doctor)
        )

        assert response.status_code == 200

    async def test_doctor_without_grant_denied(self, client, patient, doctor, headers_for):
        response = await client.get(
            f"/api/access/{patient.id}", headers=headers_for(doctor)
        )
        assert response.status_code == 403

    async def test_relative_with_grant_denied(
        self, client, token_repo, grant_repo, patient, relative, headers_for
    ):
        await _share(token_repo, grant_repo, patient, relative)

        response = await client.get(
            f"/api/access/{patient.id}", headers=headers_for(relative)
        )

        assert response.status_code == 403

    async def test_revocation_applies_to_next_request(
        self, client, token_repo, grant_repo, patient, doctor, headers_for
    ):
        token = await _share(token_repo, grant_repo, patient, doctor)
        url = f"/api/access/{patient.id}"

        assert (await client.get(url, headers=headers_for(doctor))).status_code == 200

        response = await client.put(
            f"/api/tokens/{token.id}/deactivate", headers=headers_for(patient)
        )
        assert response.status_code == 200

        assert (await client.get(url, headers=headers_for(doctor))).status_code == 403

    async def test_inactive_user_rejected(self, client, patient, headers_for):
        patient.is_active = False

        response = await client.get(
            f"/api/access/{patient.id}", headers=headers_for(patient)
        )

        assert response.status_code == 401
