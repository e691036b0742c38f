"""Financial intelligence report analysis with dashboard data."""

from ..llm import CapabilityInvoker, get_capability_invoker
from .messages import stage_failure
from .models import (
    AnalyzeFinancialDataInput,
    AnalyzeFinancialDataOutput,
    AnalyzeFinancialDataReply,
    FinancialDashboardData,
    FinancialMetric,
)
from .prompts import ANALYZE_FINANCIAL_PROMPT
from .stages import BaseStage

MAX_METRICS = 10
MAX_TRANSACTIONS = 10
MAX_PROFILES = 5

EMPTY_REPORT = "The financial intelligence report content is empty or missing. The analysis cannot be performed."


def _single_metric_dashboard(label: str, value: str) -> FinancialDashboardData:
    return FinancialDashboardData(
        key_metrics=[FinancialMetric(label=label, value=value, category="General")],
        top_suspicious_transactions=[],
        involved_parties_profiles=[],
    )


class FinancialAnalysisStage(
    BaseStage[AnalyzeFinancialDataInput, AnalyzeFinancialDataReply, AnalyzeFinancialDataOutput]
):
    name = "financial_analysis"
    prompt = ANALYZE_FINANCIAL_PROMPT

    def has_input(self, stage_input: AnalyzeFinancialDataInput) -> bool:
        return bool(stage_input.rif_text_content.strip())

    def failure_payload(self, cause: str, stage_input: AnalyzeFinancialDataInput) -> AnalyzeFinancialDataOutput:
        return AnalyzeFinancialDataOutput(
            financial_intelligence_report=stage_failure(cause, stage_input.original_file_name),
            dashboard_data=_single_metric_dashboard("Error", stage_failure(cause)),
        )

    def complete(
        self, reply: AnalyzeFinancialDataReply, stage_input: AnalyzeFinancialDataInput
    ) -> AnalyzeFinancialDataOutput:
        dashboard = reply.dashboard_data
        if dashboard is None:
            dashboard = _single_metric_dashboard("Warning", "Dashboard data was not generated.")
        else:
            dashboard = FinancialDashboardData(
                key_metrics=dashboard.key_metrics[:MAX_METRICS],
                top_suspicious_transactions=dashboard.top_suspicious_transactions[:MAX_TRANSACTIONS],
                involved_parties_profiles=dashboard.involved_parties_profiles[:MAX_PROFILES],
            )
        return AnalyzeFinancialDataOutput(
            financial_intelligence_report=(
                reply.financial_intelligence_report or "No financial intelligence report returned."
            ),
            dashboard_data=dashboard,
        )


async def analyze_financial_data(
    financial_input: AnalyzeFinancialDataInput,
    invoker: CapabilityInvoker | None = None,
    timeout: float | None = None,
) -> AnalyzeFinancialDataOutput:
    """Analyze a financial intelligence report.

    Blank content returns a fixed report with an ``Error`` metric without
    calling the capability.
    """
    if not financial_input.rif_text_content.strip():
        return AnalyzeFinancialDataOutput(
            financial_intelligence_report=EMPTY_REPORT,
            dashboard_data=_single_metric_dashboard("Error", "Report content missing"),
        )

    invoker = invoker or get_capability_invoker()
    outcome = await FinancialAnalysisStage(invoker).run(financial_input, timeout=timeout)
    return outcome.payload
