"""
Unit tests for risk aggregation and RiskService.

Tests cover the risk formula and level boundaries, summary
validation, optional-input degradation and batch failure isolation.
"""

import pytest
from unittest.mock import MagicMock, patch
from datetime import date

from services.risk_service import (
    RiskService,
    aggregate_risk,
    classify_risk_level,
    round_score,
)
from services.network_service import analyze_nodes
from models.base import SourcedValue, ValueSource
from models.projection import ProjectionResult, ProjectionSummary
from models.safety_stock import SeasonalFactor
from models.risk import FailureKind, RiskLevel, TupleStatus
from exceptions import (
    DataSourceError,
    InvalidProjectionInputError,
    InventoryNotFoundError,
    MalformedSummaryError,
)
from tests.factories import NodeInventoryFactory, SafetyStockCalculationFactory, make_tuple


def reference_summary() -> ProjectionSummary:
    return ProjectionSummary(stockout_days=3, critical_days=2, warning_days=1, total_days=30)


def make_projection(inventory=None, summary=None) -> ProjectionResult:
    return ProjectionResult(
        tuple=inventory or make_tuple(),
        starting_on_hand=100,
        horizon_days=30,
        summary=summary or reference_summary(),
    )


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_projection_service():
    """Mock ProjectionService."""
    with patch("services.risk_service.get_projection_service") as mock:
        service = MagicMock()
        service.compute_projection.side_effect = (
            lambda inventory, horizon_days=None, as_of=None: make_projection(inventory)
        )
        mock.return_value = service
        yield service


@pytest.fixture
def mock_safety_stock_service():
    """Mock SafetyStockService; March is a 1.4x month."""
    with patch("services.risk_service.get_safety_stock_service") as mock:
        service = MagicMock()
        calculation = SafetyStockCalculationFactory.create().model_copy(update={
            "seasonal_factors": [SeasonalFactor(month=3, factor=1.4)],
        })
        service.compute_safety_stock.return_value = calculation
        mock.return_value = service
        yield service


@pytest.fixture
def mock_network_service():
    """Mock NetworkService; one transfer proposed."""
    with patch("services.risk_service.get_network_service") as mock:
        service = MagicMock()
        service.analyze_network.return_value = analyze_nodes("P1", [
            NodeInventoryFactory.create("A", current_stock=100, recommended=20),
            NodeInventoryFactory.create("B", current_stock=10, recommended=60),
        ])
        mock.return_value = service
        yield service


@pytest.fixture
def risk_service(mock_projection_service, mock_safety_stock_service, mock_network_service):
    """Create RiskService with mocked dependencies."""
    return RiskService()


# ===================
# AGGREGATION TESTS
# ===================

class TestAggregateRisk:
    """Tests for aggregate_risk."""

    def test_reference_example(self):
        """3 stockout, 2 critical, 1 warning day; no seasonal or network data."""
        risk = aggregate_risk(reference_summary())

        assert risk.base_risk == 0.06
        assert risk.seasonal_risk == 0
        assert risk.network_optimization_score == 0.5
        assert risk.stockout_probability == 0.16
        assert risk.risk_level == RiskLevel.LOW

    def test_missing_inputs_are_tagged(self):
        risk = aggregate_risk(reference_summary())

        assert risk.seasonal_factor.source == ValueSource.DEFAULTED
        assert risk.seasonal_factor.value == 1.0
        assert risk.network_transfers.source == ValueSource.DEFAULTED
        assert risk.network_transfers.value == 0

    def test_seasonal_and_network(self):
        risk = aggregate_risk(reference_summary(), seasonal_factor=1.4, transfer_count=2)

        assert risk.seasonal_risk == 0.4
        assert risk.network_optimization_score == 0.8
        assert risk.stockout_probability == 0.22
        assert risk.risk_level == RiskLevel.MEDIUM
        assert risk.seasonal_factor.is_computed

    def test_zero_transfers_computed(self):
        """Computed zero transfers is a perfect score, not the 0.5 default."""
        risk = aggregate_risk(reference_summary(), transfer_count=0)

        assert risk.network_optimization_score == 1.0
        assert risk.network_transfers.source == ValueSource.COMPUTED

    def test_network_score_floor(self):
        risk = aggregate_risk(reference_summary(), transfer_count=25)

        assert risk.network_optimization_score == 0.1

    def test_defaulted_sourced_value_ignored(self):
        risk = aggregate_risk(
            reference_summary(),
            seasonal_factor=SourcedValue.defaulted(1.0, "data source down"),
        )

        assert risk.seasonal_risk == 0
        assert risk.seasonal_factor.reason == "data source down"

    def test_probability_bounded(self):
        summary = ProjectionSummary(stockout_days=90, critical_days=0, warning_days=0)

        risk = aggregate_risk(summary, seasonal_factor=3.0, transfer_count=50)

        assert risk.base_risk == 1
        assert risk.seasonal_risk == 1
        assert risk.stockout_probability == 1
        assert risk.risk_level == RiskLevel.HIGH

    def test_empty_summary(self):
        risk = aggregate_risk(ProjectionSummary(), transfer_count=0)

        assert risk.stockout_probability == 0
        assert risk.risk_level == RiskLevel.LOW

    def test_accepts_dict_summary(self):
        risk = aggregate_risk({"stockout_days": 3, "critical_days": 2, "warning_days": 1})

        assert risk.stockout_probability == 0.16

    def test_unrounded_probability_decides_level(self):
        """0.1967 displays as 0.20 but is still low."""
        risk = aggregate_risk(reference_summary(), seasonal_factor=1.4, transfer_count=1)

        assert risk.stockout_probability == 0.2
        assert risk.risk_level == RiskLevel.LOW

    def test_missing_summary_rejected(self):
        with pytest.raises(MalformedSummaryError):
            aggregate_risk(None)

    def test_negative_counts_rejected(self):
        with pytest.raises(MalformedSummaryError) as exc_info:
            aggregate_risk(ProjectionSummary(stockout_days=-1))

        assert exc_info.value.status_code == 422

    def test_garbage_summary_rejected(self):
        with pytest.raises(MalformedSummaryError):
            aggregate_risk({"stockout_days": "many"})

        with pytest.raises(MalformedSummaryError):
            aggregate_risk([3, 2, 1])


class TestRiskLevel:

    @pytest.mark.parametrize("probability,expected", [
        (0, RiskLevel.LOW),
        (0.199999, RiskLevel.LOW),
        (0.2, RiskLevel.MEDIUM),
        (0.499999, RiskLevel.MEDIUM),
        (0.5, RiskLevel.HIGH),
        (1, RiskLevel.HIGH),
    ])
    def test_boundaries(self, probability, expected):
        assert classify_risk_level(probability) == expected


class TestRoundScore:

    def test_half_up(self):
        assert round_score(0.125) == 0.13
        assert round_score(0.005) == 0.01
        assert round_score(0.15666) == 0.16


# ===================
# SERVICE TESTS
# ===================

class TestAssessRisk:
    """Tests for RiskService.assess_risk."""

    def test_full_assessment(self, risk_service):
        report = risk_service.assess_risk(make_tuple(), as_of=date(2026, 3, 1))

        assert report.safety_stock is not None
        assert report.network is not None
        assert report.risk.seasonal_factor.value == pytest.approx(1.4)
        assert report.risk.network_transfers.value == 1
        assert report.risk.stockout_probability == 0.2

    def test_month_without_factor_defaults(self, risk_service):
        report = risk_service.assess_risk(make_tuple(), as_of=date(2026, 7, 1))

        assert report.risk.seasonal_factor.source == ValueSource.DEFAULTED
        assert report.risk.seasonal_risk == 0

    def test_low_confidence_safety_stock_defaults_factor(self, risk_service, mock_safety_stock_service):
        calculation = mock_safety_stock_service.compute_safety_stock.return_value
        mock_safety_stock_service.compute_safety_stock.return_value = calculation.model_copy(update={
            "data_quality": ValueSource.DEFAULTED,
            "low_confidence": True,
            "quality_reason": "2 demand observations, 6 required",
        })

        report = risk_service.assess_risk(make_tuple(), as_of=date(2026, 3, 1))

        assert report.risk.seasonal_factor.source == ValueSource.DEFAULTED
        assert report.risk.seasonal_factor.reason == "2 demand observations, 6 required"
        assert report.risk.seasonal_risk == 0

    def test_idempotent(self, risk_service):
        first = risk_service.assess_risk(make_tuple(), as_of=date(2026, 3, 1))
        second = risk_service.assess_risk(make_tuple(), as_of=date(2026, 3, 1))

        assert first.model_dump_json() == second.model_dump_json()

    def test_safety_stock_failure_degrades(self, risk_service, mock_safety_stock_service):
        mock_safety_stock_service.compute_safety_stock.side_effect = DataSourceError("select", "timeout")

        report = risk_service.assess_risk(make_tuple(), as_of=date(2026, 3, 1))

        assert report.safety_stock is None
        assert report.risk.seasonal_factor.source == ValueSource.DEFAULTED
        assert "unavailable" in report.risk.seasonal_factor.reason
        assert report.risk.network_transfers.is_computed

    def test_network_failure_degrades(self, risk_service, mock_network_service):
        mock_network_service.analyze_network.side_effect = InventoryNotFoundError("P1", "L1", "W1")

        report = risk_service.assess_risk(make_tuple(), as_of=date(2026, 3, 1))

        assert report.network is None
        assert report.risk.network_optimization_score == 0.5
        assert report.risk.network_transfers.source == ValueSource.DEFAULTED

    def test_optional_steps_skipped(self, risk_service, mock_safety_stock_service, mock_network_service):
        report = risk_service.assess_risk(
            make_tuple(),
            as_of=date(2026, 3, 1),
            include_safety_stock=False,
            include_network=False,
        )

        mock_safety_stock_service.compute_safety_stock.assert_not_called()
        mock_network_service.analyze_network.assert_not_called()
        assert report.risk.stockout_probability == 0.16
        assert "not requested" in report.risk.network_transfers.reason

    def test_projection_failure_propagates(self, risk_service, mock_projection_service):
        mock_projection_service.compute_projection.side_effect = DataSourceError("select", "down")

        with pytest.raises(DataSourceError):
            risk_service.assess_risk(make_tuple(), as_of=date(2026, 3, 1))

    def test_unexpected_error_propagates(self, risk_service, mock_safety_stock_service):
        mock_safety_stock_service.compute_safety_stock.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            risk_service.assess_risk(make_tuple(), as_of=date(2026, 3, 1))


class TestAssessBatch:
    """Tests for RiskService.assess_batch."""

    def test_failures_isolated(self, risk_service, mock_projection_service):
        def compute(inventory, horizon_days=None, as_of=None):
            if inventory.warehouse_id == "W2":
                raise InventoryNotFoundError("P1", "L1", "W2")
            if inventory.warehouse_id == "W3":
                raise RuntimeError("boom")
            if inventory.warehouse_id == "W4":
                raise DataSourceError("select", "timeout")
            if inventory.warehouse_id == "W5":
                raise InvalidProjectionInputError("bad dates")
            return make_projection(inventory)

        mock_projection_service.compute_projection.side_effect = compute
        tuples = [make_tuple(warehouse_id=f"W{i}") for i in range(1, 6)]

        response = risk_service.assess_batch(tuples, as_of=date(2026, 3, 1))

        assert response.succeeded == 1
        assert response.failed == 4
        assert [r.tuple.warehouse_id for r in response.results] == ["W1", "W2", "W3", "W4", "W5"]
        assert response.results[0].status == TupleStatus.OK
        assert response.results[0].report.risk.risk_level == RiskLevel.LOW
        kinds = [r.error.kind for r in response.results[1:]]
        assert kinds == [
            FailureKind.NOT_FOUND,
            FailureKind.INTERNAL,
            FailureKind.DATA_SOURCE,
            FailureKind.INVALID_INPUT,
        ]
        assert response.results[1].error.code == "INVENTORY_NOT_FOUND"

    def test_all_succeed(self, risk_service):
        tuples = [make_tuple(warehouse_id=f"W{i}") for i in range(3)]

        response = risk_service.assess_batch(tuples, as_of=date(2026, 3, 1))

        assert response.succeeded == 3
        assert response.failed == 0
        assert all(r.error is None for r in response.results)
