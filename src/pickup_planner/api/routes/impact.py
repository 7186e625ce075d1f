"""Impact estimation endpoint."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...config import validate_impact_factors
from ...schemas.opportunities import ImpactEstimateRequest, ImpactTotalsModel
from ...services.grid.service import impact_model
from ...services.impact.estimator import estimate_impact

router = APIRouter(prefix="/impact", tags=["impact"])


@router.post("/estimate", response_model=ImpactTotalsModel, status_code=status.HTTP_200_OK)
def estimate(payload: ImpactEstimateRequest) -> ImpactTotalsModel:
    try:
        factors = validate_impact_factors(payload.impact_factors) if payload.impact_factors else None
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return impact_model(estimate_impact(payload.weights, factors))
