"""Rebalancing API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from models.holding import Holding
from models.portfolio import Portfolio
from models.recommendation import RebalancingRecommendation
from schemas.rebalancing import (
    NeedsRebalancingResponse,
    PortfolioPayload,
    QuickAnalysisRequest,
    QuickAnalysisResponse,
    RebalancingActionResponse,
    RebalancingRecommendationResponse,
    RebalancingRequest,
    StrategyInfoResponse,
    StrategyRecommendationRequest,
    StrategyRecommendationResponse,
    TaxImpactResponse,
)
from services.exceptions import InvalidAllocationError
from services.rebalancing_service import RebalancingService
from services.rebalancing_strategies import StrategyInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rebalancing", tags=["rebalancing"])

_rebalancing_service: Optional[RebalancingService] = None


def get_rebalancing_service() -> RebalancingService:
    """Get the RebalancingService (dependency for injection in tests)."""
    global _rebalancing_service
    if _rebalancing_service is None:
        from config import settings

        _rebalancing_service = RebalancingService.from_settings(settings)
    return _rebalancing_service


def _to_portfolio(payload: PortfolioPayload) -> Portfolio:
    try:
        holdings = tuple(
            Holding(
                symbol=h.symbol,
                quantity=h.quantity,
                average_cost=h.average_cost,
                current_price=h.current_price,
            )
            for h in payload.holdings
        )
        if payload.updated_at is None:
            return Portfolio(id=payload.id, name=payload.name, holdings=holdings)
        return Portfolio(
            id=payload.id, name=payload.name, holdings=holdings, updated_at=payload.updated_at
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def _info_response(info: StrategyInfo) -> StrategyInfoResponse:
    return StrategyInfoResponse(
        name=info.name,
        description=info.description,
        pros=list(info.pros),
        cons=list(info.cons),
        suitable_for=list(info.suitable_for),
        complexity=info.complexity,
    )


def _recommendation_response(rec: RebalancingRecommendation) -> RebalancingRecommendationResponse:
    tax = rec.tax_impact
    return RebalancingRecommendationResponse(
        recommendation_id=rec.recommendation_id,
        portfolio_id=rec.portfolio_id,
        strategy_name=rec.strategy_name,
        rebalancing_needed=rec.rebalancing_needed,
        total_deviation_percent=rec.total_deviation_percent,
        current_allocation=dict(rec.current_allocation),
        target_allocation=dict(rec.target_allocation),
        deviations=dict(rec.deviations),
        actions=[
            RebalancingActionResponse(
                symbol=a.symbol,
                action_type=a.action_type.value,
                current_quantity=a.current_quantity,
                target_quantity=a.target_quantity,
                quantity_change=a.quantity_change,
                current_price=a.current_price,
                estimated_amount=a.estimated_amount,
                current_weight=a.current_weight,
                target_weight=a.target_weight,
                deviation=a.deviation,
                priority=a.priority,
            )
            for a in rec.actions
        ],
        total_trade_amount=rec.total_trade_amount,
        estimated_transaction_cost=rec.estimated_transaction_cost,
        tax_impact=None if tax is None else TaxImpactResponse(
            estimated_capital_gains_tax=tax.estimated_capital_gains_tax,
            realized_gain=tax.realized_gain,
            tax_rate=tax.tax_rate,
            tax_efficient_sell_candidates=list(tax.tax_efficient_sell_candidates),
            tax_loss_harvesting_opportunities=list(tax.tax_loss_harvesting_opportunities),
        ),
        created_at=rec.created_at,
        next_review_date=rec.next_review_date,
        priority=rec.priority,
        notes=rec.notes,
        strategy_details=dict(rec.strategy_details),
    )


@router.post("/recommendation", response_model=RebalancingRecommendationResponse)
def create_recommendation(
    body: RebalancingRequest,
    service: RebalancingService = Depends(get_rebalancing_service),
):
    """Generate a rebalancing recommendation for a portfolio."""
    portfolio = _to_portfolio(body.portfolio)
    try:
        recommendation = service.recommend(portfolio, body.target_allocation, body.strategy_name)
    except InvalidAllocationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _recommendation_response(recommendation)


@router.post("/check", response_model=NeedsRebalancingResponse)
def check_rebalancing(
    body: RebalancingRequest,
    service: RebalancingService = Depends(get_rebalancing_service),
):
    """Check whether a portfolio needs rebalancing under a strategy."""
    portfolio = _to_portfolio(body.portfolio)
    try:
        needed = service.needs_rebalancing(portfolio, body.target_allocation, body.strategy_name)
    except InvalidAllocationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return NeedsRebalancingResponse(
        portfolio_id=portfolio.id,
        strategy_name=service.selector.select(body.strategy_name).name.value,
        rebalancing_needed=needed,
    )


@router.post("/quick-analysis", response_model=QuickAnalysisResponse)
def quick_analysis(
    body: QuickAnalysisRequest,
    service: RebalancingService = Depends(get_rebalancing_service),
):
    """Summarize drift from the target allocation without building actions."""
    portfolio = _to_portfolio(body.portfolio)
    try:
        analysis = service.quick_analysis(portfolio, body.target_allocation)
    except InvalidAllocationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return QuickAnalysisResponse(
        current_allocation=analysis.current_allocation,
        target_allocation=analysis.target_allocation,
        deviations=analysis.deviations,
        max_deviation=analysis.max_deviation,
        max_deviation_symbol=analysis.max_deviation_symbol,
        needs_attention=analysis.needs_attention,
    )


@router.post("/strategy-recommendation", response_model=StrategyRecommendationResponse)
def recommend_strategy(
    body: StrategyRecommendationRequest,
    service: RebalancingService = Depends(get_rebalancing_service),
):
    """Recommend a strategy from portfolio value, risk tolerance and horizon."""
    portfolio = _to_portfolio(body.portfolio)
    result = service.strategy_recommendation(
        portfolio, body.risk_tolerance, body.investment_horizon
    )
    return StrategyRecommendationResponse(
        recommended_strategy=result.recommended_strategy.value,
        strategy_description=result.strategy_description,
        portfolio_value=result.portfolio_value,
        risk_tolerance=result.risk_tolerance,
        investment_horizon=result.investment_horizon,
        all_strategies={name: _info_response(info) for name, info in result.all_strategies.items()},
    )


@router.get("/strategies", response_model=dict[str, StrategyInfoResponse])
def list_strategies(service: RebalancingService = Depends(get_rebalancing_service)):
    """Describe every available rebalancing strategy."""
    return {name: _info_response(info) for name, info in service.strategy_infos().items()}
