"""End-to-end controller flows through the ASGI interface."""

import pytest

from cureconnect.app import Application
from cureconnect.models import AppointmentModel, ArticleModel, InquiryModel
from cureconnect.testing import TestClient

FUTURE_DATE = "2099-01-15"


async def csrf_token(client: TestClient, path: str) -> str:
    """Load a form page so the session carries a CSRF token."""
    response = await client.get(path)
    assert response.status == 200
    return client.session["csrf_token"]


def contact_form(token: str, **overrides: str) -> dict[str, str]:
    form = {
        "csrf_token": token,
        "name": "Asha Das",
        "email": "asha@example.com",
        "phone": "+91 98765 43210",
        "message": "I would like a quote for knee surgery.",
    }
    form.update(overrides)
    return form


def appointment_form(token: str, **overrides: str) -> dict[str, str]:
    form = {
        "csrf_token": token,
        "patient_name": "Asha Rani Das",
        "patient_email": "asha@example.com",
        "patient_phone": "+91 98765 43210",
        "appointment_date": FUTURE_DATE,
        "appointment_time": "10:30",
        "service_type": "consultation",
        "status": "pending",
        "notes": "First visit",
    }
    form.update(overrides)
    return form


class TestContact:
    async def test_form_carries_csrf_token(self, client: TestClient) -> None:
        response = await client.get("/contact")
        token = client.session["csrf_token"]
        assert f'name="csrf_token" value="{token}"' in response.text

    async def test_successful_submission(self, app: Application, client: TestClient) -> None:
        token = await csrf_token(client, "/contact")
        response = await client.post("/contact", form=contact_form(token))
        assert response.status == 200
        assert "Thank you for your inquiry. We will contact you soon!" in response.text
        assert 'value="asha@example.com"' not in response.text

        (inquiry,) = InquiryModel(app.db).recent()
        assert inquiry.name == "Asha Das"
        assert inquiry.email == "asha@example.com"
        assert inquiry.language == "en"
        assert inquiry.ip_address == "127.0.0.1"

    async def test_bad_token(self, app: Application, client: TestClient) -> None:
        await csrf_token(client, "/contact")
        response = await client.post("/contact", form=contact_form("forged"))
        assert response.status == 403
        assert "Security token mismatch. Please try again." in response.text
        assert InquiryModel(app.db).recent() == []

    async def test_missing_fields(self, client: TestClient) -> None:
        token = await csrf_token(client, "/contact")
        response = await client.post("/contact", form=contact_form(token, message=""))
        assert response.status == 200
        assert "Please fill in all required fields." in response.text

    async def test_invalid_email_keeps_input_escaped(self, client: TestClient) -> None:
        token = await csrf_token(client, "/contact")
        response = await client.post(
            "/contact", form=contact_form(token, email="nope", name="<script>x</script>")
        )
        assert "Please provide a valid email address." in response.text
        assert 'value="&lt;script&gt;x&lt;/script&gt;"' in response.text
        assert "<script>x</script>" not in response.text

    async def test_rate_limit(self, app: Application, client: TestClient) -> None:
        token = await csrf_token(client, "/contact")
        for _ in range(5):
            response = await client.post("/contact", form=contact_form(token))
            assert response.status == 200
        response = await client.post("/contact", form=contact_form(token))
        assert response.status == 429
        assert "Too many submissions. Please try again later." in response.text
        assert len(InquiryModel(app.db).recent()) == 5


class TestArticles:
    async def test_show_published_article(self, app: Application, client: TestClient) -> None:
        ArticleModel(app.db).create({
            "title": "Knee Replacement in India",
            "content": "Recovery takes about six weeks.",
            "category": "orthopedics",
            "tags": ["knee"],
            "status": "published",
            "published_at": "2024-03-05 09:00:00",
            "author_name": "Dr. Rao",
        })
        response = await client.get("/article", query={"slug": "knee-replacement-in-india"})
        assert response.status == 200
        assert "<h1>Knee Replacement in India</h1>" in response.text
        assert "March 5, 2024" in response.text
        assert "Dr. Rao" in response.text
        assert "<title>Knee Replacement in India - CureConnect Test</title>" in response.text

    async def test_draft_is_not_found(self, app: Application, client: TestClient) -> None:
        ArticleModel(app.db).create({"title": "Draft", "content": "x", "status": "draft"})
        response = await client.get("/article", query={"slug": "draft"})
        assert response.status == 404

    @pytest.mark.parametrize("path", ["/article", "/article?slug=", "/article?slug=missing"])
    async def test_missing_slug(self, client: TestClient, path: str) -> None:
        response = await client.get(path)
        assert response.status == 404
        assert "Page Not Found" in response.text

    @pytest.mark.parametrize(
        "query",
        [
            {"page": "2"},
            {"page": "bogus"},
            {"page": "99999999999999999999"},
            {"category": "dental"},
            {"q": "knee"},
            {"q": "100%"},
        ],
    )
    async def test_listing_variants(self, client: TestClient, query: dict[str, str]) -> None:
        response = await client.get("/articles", query=query)
        assert response.status == 200


class TestAppointments:
    async def _create(self, client: TestClient, **overrides: str):
        token = await csrf_token(client, "/appointments/create")
        return await client.post("/appointments/create", form=appointment_form(token, **overrides))

    async def test_create_redirects_with_flash(self, app: Application, client: TestClient) -> None:
        response = await self._create(client)
        assert response.status == 302
        assert response.header("location") == "/appointments"

        (appointment,) = AppointmentModel(app.db).all()
        assert appointment.patient_name == "Asha Rani Das"
        assert appointment.appointment_date == FUTURE_DATE

        listing = await client.get("/appointments")
        assert "Appointment created successfully" in listing.text
        again = await client.get("/appointments")
        assert "Appointment created successfully" not in again.text

    async def test_create_requires_csrf(self, app: Application, client: TestClient) -> None:
        await csrf_token(client, "/appointments/create")
        response = await client.post("/appointments/create", form=appointment_form("forged"))
        assert response.status == 403
        assert AppointmentModel(app.db).all() == []

    async def test_create_invalid_rerenders_form(self, app: Application, client: TestClient) -> None:
        response = await self._create(client, patient_name="", appointment_date="2000-01-01")
        assert response.status == 200
        assert "This field is required" in response.text
        assert "Appointment date cannot be in the past" in response.text
        assert AppointmentModel(app.db).all() == []

    async def test_show(self, app: Application, client: TestClient) -> None:
        await self._create(client)
        (appointment,) = AppointmentModel(app.db).all()
        response = await client.get("/appointments/show", query={"id": str(appointment.id)})
        assert response.status == 200
        assert '<dd class="patient-name">Asha Rani Das</dd>' in response.text
        assert '<dd class="status">pending</dd>' in response.text

    @pytest.mark.parametrize(
        ("query", "status"),
        [
            ("", 400),
            ("?id=abc", 400),
            ("?id=0", 400),
            ("?id=-3", 400),
            ("?id=999", 404),
            ("?id=9223372036854775808", 404),
            ("?id=99999999999999999999", 404),
        ],
    )
    async def test_show_bad_ids(self, client: TestClient, query: str, status: int) -> None:
        response = await client.get(f"/appointments/show{query}")
        assert response.status == status

    async def test_update(self, app: Application, client: TestClient) -> None:
        await self._create(client)
        (appointment,) = AppointmentModel(app.db).all()
        path = f"/appointments/update?id={appointment.id}"

        form_page = await client.get(path)
        assert form_page.status == 200
        assert 'value="Asha Rani Das"' in form_page.text

        token = client.session["csrf_token"]
        response = await client.post(path, form=appointment_form(token, status="confirmed"))
        assert response.status == 302
        assert AppointmentModel(app.db).find(appointment.id).status == "confirmed"

        listing = await client.get("/appointments")
        assert "Appointment updated successfully" in listing.text

    async def test_update_missing(self, client: TestClient) -> None:
        response = await client.get("/appointments/update?id=999")
        assert response.status == 404
        response = await client.get("/appointments/update?id=99999999999999999999")
        assert response.status == 404

    async def test_update_requires_csrf(self, app: Application, client: TestClient) -> None:
        await self._create(client)
        (appointment,) = AppointmentModel(app.db).all()
        response = await client.post(
            f"/appointments/update?id={appointment.id}",
            form=appointment_form("forged", status="cancelled"),
        )
        assert response.status == 403
        assert AppointmentModel(app.db).find(appointment.id).status == "pending"

    async def test_delete(self, app: Application, client: TestClient) -> None:
        await self._create(client)
        (appointment,) = AppointmentModel(app.db).all()
        token = client.session["csrf_token"]
        response = await client.post(
            f"/appointments/delete?id={appointment.id}", form={"csrf_token": token}
        )
        assert response.status == 302
        assert AppointmentModel(app.db).all() == []
        listing = await client.get("/appointments")
        assert "Appointment deleted successfully" in listing.text

    async def test_delete_unknown(self, client: TestClient) -> None:
        token = await csrf_token(client, "/appointments")
        response = await client.post("/appointments/delete?id=999", form={"csrf_token": token})
        assert response.status == 302
        listing = await client.get("/appointments")
        assert "Unable to delete appointment" in listing.text

    async def test_delete_oversized_id(self, client: TestClient) -> None:
        token = await csrf_token(client, "/appointments")
        response = await client.post(
            "/appointments/delete?id=99999999999999999999", form={"csrf_token": token}
        )
        assert response.status == 302
        listing = await client.get("/appointments")
        assert "Unable to delete appointment" in listing.text

    async def test_delete_by_get_only_redirects(self, app: Application, client: TestClient) -> None:
        await self._create(client)
        response = await client.get("/appointments/delete?id=1")
        assert response.status == 302
        assert len(AppointmentModel(app.db).all()) == 1

    async def test_delete_requires_csrf(self, app: Application, client: TestClient) -> None:
        await self._create(client)
        response = await client.post("/appointments/delete?id=1", form={"csrf_token": "forged"})
        assert response.status == 403
        assert len(AppointmentModel(app.db).all()) == 1
