"""
HTTP tests through FastAPI's TestClient.

The app is built with static prices, no slippage and zero simulated
latency (see conftest), so responses are exact.
"""

UPI_SETTLEMENT = {
    "payment_id": "pay-1",
    "merchant_id": "merchant-1",
    "amount": 1000,
    "currency": "INR",
    "settlement_method": "inr_upi",
    "merchant_account_details": {"vpa": "shop@upi"},
}


class TestMeta:
    def test_root_and_health(self, client):
        assert client.get("/").json()["version"] == "0.1.0"
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert set(body["services"]) == {"pricing", "conversion", "settlement"}
        assert body["services"]["pricing"]["provider"] == "static"

    def test_request_id_is_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert resp.headers["X-Request-ID"] == "abc-123"
        assert client.get("/health").headers["X-Request-ID"]

    def test_unknown_route(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        body = resp.json()
        assert body["success"] is False
        assert body["error_code"] == "UTP_404"
        assert body["path"] == "/api/nope"


class TestConversionApi:
    def test_price(self, client):
        body = client.get("/api/conversion/price/bgt").json()
        assert body["price"] == 5650.0
        assert body["source"] == "live"
        second = client.get("/api/conversion/price/bgt").json()
        assert second["source"] == "cache"

    def test_price_unknown_asset(self, client):
        resp = client.get("/api/conversion/price/doge")
        assert resp.status_code == 400
        body = resp.json()
        assert body["error_code"] == "PRICE_FETCH_FAILED"
        assert body["field"] == "asset"
        assert "timestamp" in body

    def test_all_prices(self, client):
        body = client.get("/api/conversion/prices").json()
        assert body["success"] is True
        assert body["total_assets"] == 5
        assert body["prices"]["binr"]["price"] == 1.0

    def test_rate(self, client):
        body = client.get("/api/conversion/rate/bgt/binr").json()
        assert body["rate"] == 5650.0

    def test_convert_and_history(self, client):
        resp = client.post(
            "/api/conversion/convert",
            json={"from_asset": "bgt", "to_asset": "binr", "amount": 1000},
        )
        assert resp.status_code == 200
        result = resp.json()
        assert result["to_amount"] == 5649999.5
        assert result["fee_breakdown"]["conversion_fee"] == 0.5

        history = client.get("/api/conversion/history").json()
        assert history["count"] == 1
        assert history["history"][0]["conversion_id"] == result["conversion_id"]

        one = client.get(f"/api/conversion/history/{result['conversion_id']}")
        assert one.status_code == 200
        assert one.json()["to_amount"] == 5649999.5

    def test_convert_same_asset(self, client):
        resp = client.post(
            "/api/conversion/convert",
            json={"from_asset": "bgt", "to_asset": "bgt", "amount": 1},
        )
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "CONVERSION_CALCULATION_FAILED"

    def test_convert_rejects_non_positive_amount(self, client):
        resp = client.post(
            "/api/conversion/convert",
            json={"from_asset": "bgt", "to_asset": "binr", "amount": -5},
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["error_code"] == "CONVERSION_CALCULATION_FAILED"
        assert body["field"] == "amount"
        assert body["details"]
        assert client.get("/api/conversion/history").json()["count"] == 0

    def test_untagged_route_keeps_generic_validation_code(self, client):
        resp = client.get("/api/conversion/history?limit=0")
        assert resp.status_code == 422
        assert resp.json()["error_code"] == "REQUEST_VALIDATION_FAILED"

    def test_unknown_conversion(self, client):
        resp = client.get("/api/conversion/history/missing")
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "CONVERSION_NOT_FOUND"

    def test_supported_pairs(self, client):
        body = client.get("/api/conversion/supported-pairs").json()
        assert body["total_pairs"] == 14
        assert {"from": "bgt", "to": "binr"}.items() <= body["supported_pairs"][0].items()


class TestSettlementApi:
    def test_methods(self, client):
        body = client.get("/api/settlement/methods").json()
        codes = [m["code"] for m in body["settlement_methods"]]
        assert codes == [
            "inr_upi",
            "inr_neft",
            "binr_transfer",
            "bgt_transfer",
            "mixed_settlement",
        ]

    def test_execute_status_history_stats(self, client):
        resp = client.post("/api/settlement/execute", json=UPI_SETTLEMENT)
        assert resp.status_code == 200
        receipt = resp.json()
        assert receipt["status"] == "completed"
        assert receipt["transaction_details"]["utr"].startswith("UPI")

        status = client.get(f"/api/settlement/status/{receipt['settlement_id']}").json()
        assert status["status"] == "completed"
        assert status["merchant_id"] == "merchant-1"

        history = client.get("/api/settlement/history/merchant-1").json()
        assert history["count"] == 1

        stats = client.get("/api/settlement/stats/merchant-1").json()
        assert stats["total_settlements"] == 1
        assert stats["total_volume"] == 1000

    def test_execute_out_of_range(self, client):
        resp = client.post(
            "/api/settlement/execute", json={**UPI_SETTLEMENT, "amount": 5}
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["error_code"] == "SETTLEMENT_EXECUTION_FAILED"
        assert body["field"] == "amount"

    def test_execute_rejects_non_positive_amount(self, client):
        resp = client.post(
            "/api/settlement/execute", json={**UPI_SETTLEMENT, "amount": 0}
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["error_code"] == "SETTLEMENT_EXECUTION_FAILED"
        assert body["field"] == "amount"
        assert client.get("/api/settlement/history/merchant-1").json()["count"] == 0

    def test_execute_missing_field(self, client):
        payload = {k: v for k, v in UPI_SETTLEMENT.items() if k != "merchant_id"}
        resp = client.post("/api/settlement/execute", json=payload)
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "SETTLEMENT_EXECUTION_FAILED"

    def test_execute_dispatch_failure(self, client):
        resp = client.post(
            "/api/settlement/execute",
            json={**UPI_SETTLEMENT, "merchant_account_details": {}},
        )
        assert resp.status_code == 502
        body = resp.json()
        assert body["status"] == "failed"
        stored = client.get(f"/api/settlement/status/{body['settlement_id']}").json()
        assert stored["status"] == "failed"

    def test_unknown_settlement(self, client):
        resp = client.get("/api/settlement/status/missing")
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "SETTLEMENT_NOT_FOUND"

    def test_calculate_fees(self, client):
        body = client.post(
            "/api/settlement/calculate-fees",
            json={"amount": 1000, "settlement_method": "inr_upi"},
        ).json()
        assert round(body["total_fee"], 2) == 1.18
        assert round(body["net_amount"], 2) == 998.82

    def test_calculate_fees_unknown_method(self, client):
        resp = client.post(
            "/api/settlement/calculate-fees",
            json={"amount": 1000, "settlement_method": "swift"},
        )
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "FEE_CALCULATION_FAILED"


class TestPaymentApi:
    def test_process(self, client):
        resp = client.post(
            "/api/payments/process",
            json={
                "merchant_id": "merchant-1",
                "from_asset": "bgt",
                "to_asset": "binr",
                "amount": 1,
                "settlement_method": "binr_transfer",
                "merchant_account_details": {"wallet_address": "0xabc"},
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["conversion"]["to_amount"] == 5650.0
        assert body["settlement"]["status"] == "completed"

    def test_process_invalid_asset(self, client):
        resp = client.post(
            "/api/payments/process",
            json={
                "merchant_id": "merchant-1",
                "from_asset": "eth",
                "to_asset": "binr",
                "amount": 1,
                "settlement_method": "binr_transfer",
            },
        )
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "PAYMENT_PROCESSING_FAILED"

    def test_process_unsettleable_target_leaves_no_history(self, client):
        resp = client.post(
            "/api/payments/process",
            json={
                "merchant_id": "merchant-1",
                "from_asset": "bgt",
                "to_asset": "rwa",
                "amount": 1,
                "settlement_method": "binr_transfer",
                "merchant_account_details": {"wallet_address": "0xabc"},
            },
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["error_code"] == "PAYMENT_PROCESSING_FAILED"
        assert body["field"] == "currency"
        assert client.get("/api/conversion/history").json()["count"] == 0
