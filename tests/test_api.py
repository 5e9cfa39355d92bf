import io
from datetime import datetime, timezone
import pandas as pd
import pytest
from apps.coordinates import services
from apps.coordinates.models import ConversionRecord
from apps.rescuers.crud import record_location
from apps.rescuers.models import BatteryStatus, Device
from core.exceptions import StorageError
from core.security import create_access_token

CONVERT_URL = "/api/v1/coordinates/convert"


@pytest.mark.asyncio
async def test_convert_requires_identity(client):
    response = await client.post(CONVERT_URL, json={"coordinates": [], "from": "WGS84", "to": "GCJ02"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_convert_rejects_invalid_token(client, user):
    response = await client.post(
        CONVERT_URL,
        json={"coordinates": [], "from": "WGS84", "to": "GCJ02"},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_convert_and_record(client, user, auth_headers):
    body = {
        "coordinates": [{"lng": 116.391275, "lat": 39.9075}, {"lng": 121.473701, "lat": 31.230416}],
        "from": "WGS84",
        "to": "GCJ02",
    }
    response = await client.post(CONVERT_URL, json=body, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["recorded"] is True
    assert len(data["results"]) == 2
    assert data["results"][0]["original"]["lng"] == 116.391275
    assert data["results"][0]["converted"]["lng"] != 116.391275
    assert await ConversionRecord.filter(user_id=user.id).count() == 1


@pytest.mark.asyncio
async def test_convert_unsupported_datum(client, user, auth_headers):
    body = {"coordinates": [{"lng": 116.0, "lat": 39.0}], "from": "EPSG:3857", "to": "WGS84"}
    response = await client.post(CONVERT_URL, json=body, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["code"] == 400
    assert await ConversionRecord.all().count() == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("datums", [{"to": "WGS84"}, {"from": "GCJ02"}, {}])
async def test_convert_missing_datum(client, user, auth_headers, datums):
    body = {"coordinates": [{"lng": 116.0, "lat": 39.0}], **datums}
    response = await client.post(CONVERT_URL, json=body, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["code"] == 400
    assert await ConversionRecord.all().count() == 0


@pytest.mark.asyncio
async def test_convert_missing_coordinates(client, user, auth_headers):
    response = await client.post(CONVERT_URL, json={"from": "WGS84", "to": "GCJ02"}, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_convert_returns_results_when_record_fails(client, user, auth_headers, monkeypatch):
    async def broken(*args, **kwargs):
        raise StorageError()

    monkeypatch.setattr(services, "create_conversion_record", broken)
    body = {"coordinates": [{"lng": 116.0, "lat": 39.0}], "from": "GCJ02", "to": "BD09"}
    response = await client.post(CONVERT_URL, json=body, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["recorded"] is False
    assert len(response.json()["results"]) == 1


@pytest.mark.asyncio
async def test_single_point_conversion(client):
    response = await client.get(CONVERT_URL, params={"lng": 116.0, "lat": 39.0, "from": "wgs84", "to": "wgs84"})
    assert response.status_code == 200
    assert response.json() == {"lng": 116.0, "lat": 39.0, "from_sys": "WGS84", "to_sys": "WGS84"}


@pytest.mark.asyncio
async def test_single_point_conversion_without_datum(client):
    response = await client.get(CONVERT_URL, params={"lng": 116.0, "lat": 39.0, "to": "GCJ02"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_history_pagination(client, user, auth_headers):
    for i in range(12):
        body = {"coordinates": [{"lng": 116.0 + i, "lat": 39.0}], "from": "WGS84", "to": "GCJ02", "notes": str(i + 1)}
        assert (await client.post(CONVERT_URL, json=body, headers=auth_headers)).status_code == 200

    response = await client.get("/api/v1/coordinates/history", params={"page": 2, "limit": 5}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 12
    assert data["page"] == 2
    assert data["limit"] == 5
    assert [row["notes"] for row in data["history"]] == ["7", "6", "5", "4", "3"]


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"page": 0}, {"page": "abc"}, {"limit": "1.5"}, {"limit": 500}])
async def test_history_invalid_pagination(client, user, auth_headers, params):
    response = await client.get("/api/v1/coordinates/history", params=params, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["code"] == 400


@pytest.mark.asyncio
async def test_parse_map_url(client, user, auth_headers):
    response = await client.post(
        "/api/v1/coordinates/parse-map-url",
        json={"url": "https://map.baidu.com/@116.404,39.915,17z"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["system"] == "BD09"
    assert data["coordinates"]["lng"] == 116.404
    assert data["coordinates"]["lat"] == 39.915


@pytest.mark.asyncio
async def test_parse_unrecognized_map_url(client, user, auth_headers):
    response = await client.post(
        "/api/v1/coordinates/parse-map-url",
        json={"url": "https://www.openstreetmap.org/#map=15/39.9/116.4"},
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_rescuer_roster_and_detail(client, rescuer, auth_headers):
    await record_location(rescuer.id, 39.9, 116.4, altitude=50.0)
    await Device.create(user_id=rescuer.id, device_model="RT-200", battery_level=77, battery_status=BatteryStatus.DISCHARGING)

    response = await client.get("/api/v1/rescuers/", headers=auth_headers)
    assert response.status_code == 200
    [entry] = response.json()["rescuers"]
    assert entry["username"] == "rescuer-01"
    assert entry["battery_level"] == 77
    assert entry["latitude"] == 39.9

    response = await client.get(f"/api/v1/rescuers/{rescuer.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["rescuer"]["device_model"] == "RT-200"


@pytest.mark.asyncio
async def test_unknown_rescuer(client, user, auth_headers):
    response = await client.get("/api/v1/rescuers/9999", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rescuer_history_window(client, rescuer, auth_headers):
    for second in (1, 2, 3, 4):
        await record_location(rescuer.id, 30.0 + second, 110.0, timestamp=datetime(2024, 7, 1, 8, 0, second, tzinfo=timezone.utc))

    response = await client.get(
        f"/api/v1/rescuers/{rescuer.id}/history",
        params={"start_time": "2024-07-01T08:00:02Z", "end_time": "2024-07-01T08:00:03Z"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert [p["latitude"] for p in response.json()["history"]] == [33.0, 32.0]


@pytest.mark.asyncio
@pytest.mark.parametrize("start,end", [
    ("2024-07-01T16:00:02+08:00", "2024-07-01T16:00:03+08:00"),
    ("2024-07-01T08:00:02", "2024-07-01T08:00:03"),
])
async def test_rescuer_history_window_offset_and_naive(client, rescuer, auth_headers, start, end):
    for second in (1, 2, 3, 4):
        await record_location(rescuer.id, 30.0 + second, 110.0, timestamp=datetime(2024, 7, 1, 8, 0, second, tzinfo=timezone.utc))

    response = await client.get(
        f"/api/v1/rescuers/{rescuer.id}/history",
        params={"start_time": start, "end_time": end},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert [p["latitude"] for p in response.json()["history"]] == [33.0, 32.0]


@pytest.mark.asyncio
async def test_update_device(client, rescuer, auth_headers):
    response = await client.put(f"/api/v1/rescuers/{rescuer.id}/device", json={"battery_level": 40}, headers=auth_headers)
    assert response.status_code == 404

    await Device.create(user_id=rescuer.id, device_model="RT-200", battery_level=90, battery_status=BatteryStatus.FULL)
    response = await client.put(
        f"/api/v1/rescuers/{rescuer.id}/device",
        json={"battery_level": 40, "battery_status": "discharging"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    device = response.json()["device"]
    assert device["battery_level"] == 40
    assert device["battery_status"] == "discharging"
    assert device["device_model"] == "RT-200"


@pytest.mark.asyncio
async def test_excel_batch_conversion(client, user, auth_headers):
    source = pd.DataFrame({"名称": ["A", "B"], "经度": [116.391275, "bad"], "纬度": [39.9075, 39.9]})
    buffer = io.BytesIO()
    source.to_excel(buffer, index=False, engine="openpyxl")

    response = await client.post(
        "/api/v1/coordinates/convert-excel",
        files={"file": ("points.xlsx", buffer.getvalue(), "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")},
        data={"from": "WGS84", "to": "GCJ02"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    result = pd.read_excel(io.BytesIO(response.content), engine="openpyxl")
    assert result.loc[0, "转换后经度"] != pytest.approx(116.391275, abs=1e-6)
    assert pd.isna(result.loc[1, "转换后经度"])
    record = await ConversionRecord.get(user_id=user.id)
    assert len(record.original_coordinates) == 1


@pytest.mark.asyncio
async def test_token_for_deleted_user_rejected(client, db):
    token = create_access_token({"sub": "12345"})
    response = await client.get("/api/v1/rescuers/", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
