"""Opportunity analysis endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.opportunities import (
    AreaImpactModel,
    AreaImpactRequest,
    OpportunityRequest,
    OpportunityResponse,
)
from ...services.grid.service import analyze_opportunities, area_impact

router = APIRouter(prefix="/opportunities", tags=["opportunities"])
logger = logging.getLogger(__name__)


@router.post("/analyze", response_model=OpportunityResponse, status_code=status.HTTP_200_OK)
def analyze(payload: OpportunityRequest) -> OpportunityResponse:
    try:
        return analyze_opportunities(payload)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error analyzing opportunities: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to analyze opportunities: {str(exc)}"
        ) from exc


@router.post("/area-impact", response_model=AreaImpactModel, status_code=status.HTTP_200_OK)
def area(payload: AreaImpactRequest) -> AreaImpactModel:
    try:
        return area_impact(payload)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
