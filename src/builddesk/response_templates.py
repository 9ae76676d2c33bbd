"""Summary: Canned support response templates.

Importance: Provides ready-made replies for common ticket categories.
Alternatives: Draft every reply with an LLM.
"""

from __future__ import annotations

from dataclasses import dataclass

from builddesk.models import TicketCategory


@dataclass(frozen=True)
class ResponseTemplate:
    """Summary: Body text used for one ticket category.

    Importance: Keeps reply wording reviewable outside the composing logic.
    Alternatives: Store templates in the database for admin editing.
    """

    name: str
    category: TicketCategory | None
    body: str


GENERIC_TEMPLATE = ResponseTemplate(
    name="received",
    category=None,
    body=(
        "I've received your message and will look into this for you. "
        "I'll get back to you shortly with a solution.\n"
    ),
)


def list_templates() -> list[ResponseTemplate]:
    """Summary: Return the category-specific templates.

    Importance: Powers CLI discovery and template lookup.
    Alternatives: Discover templates from files on disk.
    """

    return [
        ResponseTemplate(
            name="integration",
            category=TicketCategory.INTEGRATION_ISSUE,
            body=(
                "I can help you with your integration issue. To troubleshoot, please:\n\n"
                "1. Go to Settings → Integrations\n"
                "2. Check the connection status\n"
                "3. Try reconnecting if needed\n\n"
                "If the issue persists, please reply with the specific error message you're seeing.\n"
            ),
        ),
        ResponseTemplate(
            name="billing",
            category=TicketCategory.BILLING_QUESTION,
            body=(
                "For billing questions, you can:\n\n"
                "1. View your invoices in Settings → Billing\n"
                "2. Update payment methods\n"
                "3. Change your subscription\n\n"
                "If you need specific assistance, please let me know what you'd like to do.\n"
            ),
        ),
        ResponseTemplate(
            name="how_to",
            category=TicketCategory.HOW_TO_QUESTION,
            body=(
                "I'd be happy to help! Please check our knowledge base for step-by-step guides:\n\n"
                "{knowledge_base_url}\n\n"
                "If you need more specific help, please reply with details about what you're "
                "trying to accomplish.\n"
            ),
        ),
    ]


def template_for(category: TicketCategory) -> ResponseTemplate:
    """Summary: Pick the template for a category, falling back to the generic reply."""

    templates = {template.category: template for template in list_templates()}
    return templates.get(category, GENERIC_TEMPLATE)
