"""Claude API client for financial executive summaries."""

import anthropic
import structlog

from .config import settings
from .models import FinancialReport

logger = structlog.get_logger(__name__)

NOT_CONFIGURED_MESSAGE = (
    "El resumen ejecutivo no está disponible: configure NETFINANCE_ANTHROPIC_API_KEY."
)

SYSTEM_PROMPT = """You are a senior network infrastructure finance consultant writing for the executive team of a regional network operator.

You receive pre-aggregated figures about transit carriers, geographic plazas and contract optimization opportunities.

Your role is to:
1. Assess overall spend and how efficiently contracted bandwidth is used
2. Point out the carriers and plazas that need attention
3. Prioritize the savings opportunities by business impact
4. Suggest concrete next steps

Write at most four short paragraphs in Spanish, in a direct executive register.
If the data is marked as demo data, say so in the first sentence."""


class ClaudeClient:
    """Client for Claude API interactions."""

    def __init__(self) -> None:
        self.client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        self.model = settings.claude_model
        self.max_tokens = settings.claude_max_tokens

    @property
    def is_configured(self) -> bool:
        return bool(settings.anthropic_api_key)

    async def summarize_report(self, report: FinancialReport) -> str:
        """Write a narrative executive summary of a financial report."""
        prompt = self._build_summary_prompt(report)
        return await self._query(prompt)

    def _build_summary_prompt(self, report: FinancialReport) -> str:
        summary = report.summary
        currency = summary.currency

        carriers_text = "\n".join(
            f"- {c.carrier}: {currency} {c.monthly_cost:,.2f}, "
            f"{c.utilized_mbps:,.1f}/{c.contracted_mbps:,.1f} Mbps "
            f"({c.utilization_percentage:.1f}%), status {c.status.value}, "
            f"potential saving {currency} {c.potential_saving:,.2f}"
            for c in report.carrier_analysis
        )
        plazas_text = "\n".join(
            f"- {p.plaza}: {currency} {p.monthly_cost:,.2f}, {p.carriers} carriers, "
            f"efficiency {p.efficiency:.1f}%, {p.optimization_opportunities} opportunities"
            for p in report.plaza_breakdown
        )
        opportunities_text = "\n".join(
            f"- [{o.priority.value.upper()}] {o.type.value}: {o.description} "
            f"(saving {currency} {o.potential_saving:,.2f})"
            for o in report.optimization_opportunities[:5]
        )

        return f"""Summarize this network financial report ({summary.period_label}, source: {report.source.value}):

**Summary:**
- Total cost: {currency} {summary.total_monthly_cost:,.2f}
- Weighted average utilization: {summary.average_utilization:.1f}%
- Potential savings: {currency} {summary.potential_savings:,.2f}
- Optimizable contracts: {summary.optimizable_contracts}
- Blended cost per Mbps: {currency} {summary.cost_per_mbps:,.2f}

**Carriers:**
{carriers_text or "- none"}

**Plazas:**
{plazas_text or "- none"}

**Top opportunities:**
{opportunities_text or "- none"}"""

    async def _query(self, prompt: str) -> str:
        """Send query to Claude API."""
        if not settings.anthropic_api_key:
            raise ValueError("NETFINANCE_ANTHROPIC_API_KEY not configured")

        logger.debug("sending_claude_query", prompt_length=len(prompt))

        message = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )

        response_text = message.content[0].text

        logger.info(
            "claude_query_complete",
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
        )

        return response_text
