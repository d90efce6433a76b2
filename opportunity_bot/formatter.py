"""
Message formatting for posted opportunities.

Posts use Telegram's legacy Markdown parse mode.
"""

from opportunity_bot.models import Category, Opportunity
from opportunity_bot.text import summarize

HEADER = "🌍 *Opportunities4Africa* 🌍\n━━━━━━━━━━━━━━━━━━━━\n\n"
FOOTER = "\n\n━━━━━━━━━━━━━━━━━━━━\n⚡ *Powered by Almuk* ⚡"

SUMMARY_LENGTH = 200

CATEGORY_EMOJI = {
    Category.SCHOLARSHIPS: "🎓",
    Category.VOLUNTEER: "🤝",
    Category.NGO: "🏢",
    Category.TECH: "💻",
}
DEFAULT_EMOJI = "📢"


def format_opportunity(opportunity: Opportunity) -> str:
    """
    Format an opportunity as a post body.

    Parameters
    ----------
    opportunity : Opportunity
        The opportunity to format.

    Returns
    -------
    str
        Markdown text with header, title, summary, date, apply link and source.
    """
    emoji = CATEGORY_EMOJI.get(opportunity.category, DEFAULT_EMOJI)
    category = opportunity.category.value.upper()

    parts = [
        f"{emoji} *{category} OPPORTUNITY*",
        f"*{opportunity.title}*",
        summarize(opportunity.description, SUMMARY_LENGTH),
        f"📅 {opportunity.published_label}\n🔗 [Apply Here]({opportunity.link})",
        f"📌 Source: {opportunity.source_name}",
    ]
    return "\n\n".join(parts)


def add_branding(content: str) -> str:
    """Wrap content with the channel header and footer."""
    return HEADER + content + FOOTER
