import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from kpi_service.database import get_db
from kpi_service.models.kpi import KpiConfig, CONFIG_ROW_ID
from kpi_service.schemas.kpi import KpiConfigUpdate, KpiConfigResponse
from kpi_service.services.review import load_config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/kpi/config", tags=["kpi-config"])

@router.get("", response_model=KpiConfigResponse)
async def get_config(db: AsyncSession = Depends(get_db)):
    return await load_config(db)

@router.put("", response_model=KpiConfigResponse)
async def update_config(
    config_in: KpiConfigUpdate,
    db: AsyncSession = Depends(get_db)
):
    # Weight sum and ranges are validated by KpiConfigUpdate
    config = await db.get(KpiConfig, CONFIG_ROW_ID)
    if config is None:
        config = KpiConfig(id=CONFIG_ROW_ID)
        db.add(config)

    for field, value in config_in.model_dump().items():
        setattr(config, field, value)

    await db.commit()
    await db.refresh(config)
    logger.info(
        "KPI config updated: weights %s/%s/%s",
        config.weight_okr, config.weight_behavior, config.weight_attendance
    )
    return config
