"""Tests for FastAPI endpoints."""

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from httpx import Client

from fx_deal_system.api.app import GENERIC_ERROR_MESSAGE, create_app
from fx_deal_system.api.routes import HEALTH_MESSAGE
from fx_deal_system.container import get_deal_service
from fx_deal_system.services.deals import DealServiceImpl
from fx_deal_system.services.interfaces import DealService


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "dealUniqueId": "FX-001",
        "fromCurrencyIsoCode": "USD",
        "toCurrencyIsoCode": "EUR",
        "dealTimestamp": "2024-01-15T10:30:00",
        "dealAmount": 1000.50,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def test_client(deal_service: DealServiceImpl) -> Client:
    """Create a test client backed by an in-memory database."""
    from starlette.testclient import TestClient

    app = create_app()
    app.dependency_overrides[get_deal_service] = lambda: deal_service

    return TestClient(app)


@pytest.fixture
def failing_client() -> Client:
    """Create a test client whose service blows up on every call."""
    from starlette.testclient import TestClient

    service = MagicMock(spec=DealService)
    service.import_deal.side_effect = RuntimeError("database exploded")
    service.get_all_deals.side_effect = RuntimeError("database exploded")

    app = create_app()
    app.dependency_overrides[get_deal_service] = lambda: service

    return TestClient(app, raise_server_exceptions=False)


class TestHealthEndpoint:
    def test_health_returns_plain_text(self, test_client: Client) -> None:
        response = test_client.get("/deals/health")

        assert response.status_code == 200
        assert response.text == HEALTH_MESSAGE
        assert response.headers["content-type"].startswith("text/plain")


class TestImportDealEndpoint:
    def test_valid_deal_returns_201(self, test_client: Client) -> None:
        response = test_client.post("/deals", json=_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["dealUniqueId"] == "FX-001"
        assert data["status"] == "SUCCESS"
        assert data["message"] == "Deal imported successfully"
        assert data["fromCurrencyIsoCode"] == "USD"
        assert data["toCurrencyIsoCode"] == "EUR"
        assert data["dealTimestamp"] == "2024-01-15T10:30:00"
        assert Decimal(str(data["dealAmount"])) == Decimal("1000.5")
        assert data["id"] is not None
        assert data["createdAt"] is not None

    def test_snake_case_keys_are_accepted(self, test_client: Client) -> None:
        payload = {
            "deal_unique_id": "FX-SNAKE",
            "from_currency_iso_code": "GBP",
            "to_currency_iso_code": "CHF",
            "deal_timestamp": "2024-01-15T10:30:00",
            "deal_amount": "15.25",
        }

        response = test_client.post("/deals", json=payload)

        assert response.status_code == 201
        assert response.json()["dealUniqueId"] == "FX-SNAKE"

    def test_lowercase_codes_come_back_uppercase(self, test_client: Client) -> None:
        response = test_client.post(
            "/deals", json=_payload(fromCurrencyIsoCode="usd", toCurrencyIsoCode="jpy")
        )

        assert response.status_code == 201
        data = response.json()
        assert data["fromCurrencyIsoCode"] == "USD"
        assert data["toCurrencyIsoCode"] == "JPY"

    def test_duplicate_returns_409(self, test_client: Client) -> None:
        test_client.post("/deals", json=_payload())

        response = test_client.post("/deals", json=_payload())

        assert response.status_code == 409
        data = response.json()
        assert data["status"] == 409
        assert data["error"] == "Duplicate Deal"
        assert data["message"] == "Deal with ID FX-001 already exists"
        assert "timestamp" in data

    def test_same_currency_returns_400_invalid_deal(self, test_client: Client) -> None:
        response = test_client.post("/deals", json=_payload(toCurrencyIsoCode="usd"))

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid Deal"
        assert data["message"] == "From and To currencies must be different"

    def test_reserved_currency_returns_400(self, test_client: Client) -> None:
        response = test_client.post("/deals", json=_payload(toCurrencyIsoCode="XXX"))

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid currency ISO code: XXX"

    def test_missing_field_returns_validation_failed(self, test_client: Client) -> None:
        payload = _payload()
        del payload["dealUniqueId"]

        response = test_client.post("/deals", json=payload)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Validation Failed"
        assert data["status"] == 400
        assert data["messages"] == {"dealUniqueId": "dealUniqueId is required"}

    def test_blank_id_is_reported_as_required(self, test_client: Client) -> None:
        response = test_client.post("/deals", json=_payload(dealUniqueId="   "))

        assert response.status_code == 400
        assert response.json()["messages"]["dealUniqueId"] == "dealUniqueId is required"

    def test_short_currency_code_must_be_three_letters(
        self, test_client: Client
    ) -> None:
        response = test_client.post("/deals", json=_payload(fromCurrencyIsoCode="US"))

        assert response.status_code == 400
        assert response.json()["messages"] == {
            "fromCurrencyIsoCode": "fromCurrencyIsoCode must be 3 letters"
        }

    @pytest.mark.parametrize("amount", [0, -10])
    def test_non_positive_amount_returns_validation_failed(
        self, test_client: Client, amount: int
    ) -> None:
        response = test_client.post("/deals", json=_payload(dealAmount=amount))

        assert response.status_code == 400
        assert response.json()["messages"] == {
            "dealAmount": "dealAmount must be greater than 0"
        }

    def test_future_timestamp_returns_validation_failed(
        self, test_client: Client
    ) -> None:
        future = (datetime.now() + timedelta(days=2)).strftime("%Y-%m-%dT%H:%M:%S")

        response = test_client.post("/deals", json=_payload(dealTimestamp=future))

        assert response.status_code == 400
        assert response.json()["messages"] == {
            "dealTimestamp": "dealTimestamp cannot be in the future"
        }

    def test_several_shape_failures_are_reported_together(
        self, test_client: Client
    ) -> None:
        response = test_client.post(
            "/deals", json={"fromCurrencyIsoCode": "USDX", "dealAmount": 5}
        )

        assert response.status_code == 400
        messages = response.json()["messages"]
        assert messages["dealUniqueId"] == "dealUniqueId is required"
        assert messages["fromCurrencyIsoCode"] == "fromCurrencyIsoCode must be 3 letters"
        assert messages["toCurrencyIsoCode"] == "toCurrencyIsoCode is required"
        assert messages["dealTimestamp"] == "dealTimestamp is required"
        assert "dealAmount" not in messages

    def test_unexpected_error_returns_generic_500(
        self, failing_client: Client
    ) -> None:
        response = failing_client.post("/deals", json=_payload())

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Internal Server Error"
        assert data["message"] == GENERIC_ERROR_MESSAGE
        assert "exploded" not in response.text


class TestBulkImportEndpoint:
    def test_mixed_batch_returns_201_with_per_item_status(
        self, test_client: Client
    ) -> None:
        batch = [
            _payload(dealUniqueId="FX-1"),
            _payload(dealUniqueId="FX-2", dealAmount=0),
            _payload(dealUniqueId="FX-1"),
            _payload(dealUniqueId="FX-3", toCurrencyIsoCode="XXX"),
        ]

        response = test_client.post("/deals/bulk", json=batch)

        assert response.status_code == 201
        data = response.json()
        assert [item["status"] for item in data] == [
            "SUCCESS",
            "FAILED",
            "FAILED",
            "FAILED",
        ]
        assert data[1]["message"] == "Deal amount must be positive"
        assert data[2]["message"] == "Deal with ID FX-1 already exists"
        assert data[3]["message"] == "Invalid currency ISO code: XXX"
        assert data[1]["id"] is None

    def test_item_with_missing_fields_fails_alone(self, test_client: Client) -> None:
        response = test_client.post(
            "/deals/bulk", json=[{"dealUniqueId": "FX-EMPTY"}, _payload()]
        )

        assert response.status_code == 201
        data = response.json()
        assert data[0]["status"] == "FAILED"
        assert data[0]["message"] == "From currency ISO code is required"
        assert data[1]["status"] == "SUCCESS"

    def test_padded_id_is_stored_like_single_import(
        self, test_client: Client
    ) -> None:
        single = test_client.post("/deals", json=_payload(dealUniqueId=" FX-1 "))
        bulk = test_client.post(
            "/deals/bulk",
            json=[
                _payload(dealUniqueId="  FX-1"),
                _payload(dealUniqueId=" FX-2 ", fromCurrencyIsoCode=" gbp "),
            ],
        )

        assert single.json()["dealUniqueId"] == "FX-1"
        data = bulk.json()
        assert data[0]["status"] == "FAILED"
        assert data[0]["message"] == "Deal with ID FX-1 already exists"
        assert data[1]["dealUniqueId"] == "FX-2"
        assert data[1]["fromCurrencyIsoCode"] == "GBP"
        assert test_client.get("/deals/FX-2").status_code == 200

    def test_empty_batch_returns_empty_list(self, test_client: Client) -> None:
        response = test_client.post("/deals/bulk", json=[])

        assert response.status_code == 201
        assert response.json() == []

    def test_unparseable_item_rejects_whole_request(self, test_client: Client) -> None:
        response = test_client.post(
            "/deals/bulk", json=[_payload(), _payload(dealAmount="lots")]
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Validation Failed"
        assert "1.dealAmount" in data["messages"]

        listing = test_client.get("/deals")
        assert listing.json() == []


class TestQueryEndpoints:
    def test_list_empty_returns_empty_array(self, test_client: Client) -> None:
        response = test_client.get("/deals")

        assert response.status_code == 200
        assert response.json() == []

    def test_list_returns_imported_deals(self, test_client: Client) -> None:
        test_client.post("/deals", json=_payload(dealUniqueId="FX-A"))
        test_client.post("/deals", json=_payload(dealUniqueId="FX-B"))

        response = test_client.get("/deals")

        assert response.status_code == 200
        data = response.json()
        assert [d["dealUniqueId"] for d in data] == ["FX-A", "FX-B"]
        assert all(d["message"] == "Deal fetched successfully" for d in data)

    def test_get_by_unique_id(self, test_client: Client) -> None:
        test_client.post("/deals", json=_payload())

        response = test_client.get("/deals/FX-001")

        assert response.status_code == 200
        data = response.json()
        assert data["dealUniqueId"] == "FX-001"
        assert data["status"] == "SUCCESS"
        assert data["message"] == "Deal fetched successfully"

    def test_get_unknown_returns_400(self, test_client: Client) -> None:
        response = test_client.get("/deals/NOPE")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid Deal"
        assert data["message"] == "Deal not found with ID: NOPE"

    def test_list_failure_returns_generic_500(self, failing_client: Client) -> None:
        response = failing_client.get("/deals")

        assert response.status_code == 500
        assert response.json()["message"] == GENERIC_ERROR_MESSAGE


class TestApplicationLifespan:
    def test_startup_opens_store_and_shutdown_releases_it(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from starlette.testclient import TestClient

        from fx_deal_system import container as container_module
        from fx_deal_system.config import get_settings

        monkeypatch.setenv("FXD_SQLITE_PATH", ":memory:")
        get_settings.cache_clear()
        container_module.reset_container()
        try:
            with TestClient(create_app()) as client:
                response = client.post("/deals", json=_payload())
                assert response.status_code == 201
                assert container_module._container is not None

            assert container_module._container is None
        finally:
            container_module.reset_container()
            get_settings.cache_clear()

    def test_request_id_header_is_echoed(self, test_client: Client) -> None:
        response = test_client.get("/deals/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_is_generated_when_absent(self, test_client: Client) -> None:
        response = test_client.get("/deals")

        assert response.headers["X-Request-ID"]
