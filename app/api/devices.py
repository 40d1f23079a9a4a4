from typing import Optional

from fastapi import APIRouter

from app.models.telemetry import DetailPoint, DetailsResponse
from app.services.discovery_service import get_discovery_service
from app.services.series_service import get_series_service, parse_window

router = APIRouter()


@router.get("/devices", response_model=list[str])
async def list_devices():
    service = get_discovery_service()
    return await service.list_devices()


@router.get("/device-parameters", response_model=list[str])
async def list_device_parameters(source: str):
    service = get_discovery_service()
    return await service.list_parameters(source)


@router.get("/device-months", response_model=list[str])
async def list_device_months(source: str):
    service = get_discovery_service()
    return await service.list_months(source)


@router.get(
    "/device-details",
    response_model=DetailsResponse,
    response_model_exclude_none=True,
)
async def get_device_details(
    source: str,
    parameter: str,
    startTime: Optional[str] = None,
    endTime: Optional[str] = None,
):
    window = parse_window(startTime, endTime)

    service = get_series_service()
    result = await service.fetch_series(source, parameter, window)

    return DetailsResponse(
        data=[
            DetailPoint(timestamp=point.timestamp, body={parameter: point.value})
            for point in result.data
        ],
        suggested_range=result.suggested_range,
    )
