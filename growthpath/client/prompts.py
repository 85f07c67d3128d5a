"""Prompt assembly for the roadmap outline and step narration requests."""

from __future__ import annotations

from growthpath.domain import BusinessProfile, StrategyFocus

PRECEDING_CONTEXT_LIMIT = 1000

AGENCY_KNOWLEDGE_BASE = """
Espacios is a done-for-you growth and automation agency.
Services:
1. Lead Generation & Paid Ads (Meta, Google, Funnel strategy).
2. WhatsApp & Messaging Sales (Shared inboxes, lead routing, faster close rates).
3. AI-Powered Automation (First response, qualification, intent detection, AI Copilots).
4. Email Marketing & Nurturing (Drip sequences, CRM-linked automation).
5. CRM & Sales Infrastructure (HubSpot/Zoho setup, pipeline design).
6. Custom Workflows (Assignment rules, booking automation, data enrichment).
Approach: "We do the work for you. We run the system. Systems, not just tools."
"""

_FOCUS_INSTRUCTIONS = {
    StrategyFocus.LEAD_GEN: (
        "Focus on demand generation, ad-to-WhatsApp funnels, and high-intent "
        "Google search strategy."
    ),
    StrategyFocus.WHATSAPP_SALES: (
        "Focus on conversational commerce, reducing lead leakage in DMs, and "
        "shared inbox efficiency."
    ),
    StrategyFocus.AI_AUTOMATION: (
        "Focus on using AI for lead qualification and instant response handling "
        "to scale without adding headcount."
    ),
    StrategyFocus.EMAIL_NURTURE: (
        "Focus on turning cold leads into long-term revenue through sophisticated "
        "drip sequences."
    ),
    StrategyFocus.CRM_INFRA: (
        "Focus on connecting silos, pipeline visibility, and single-source-of-truth "
        "setup."
    ),
    StrategyFocus.CUSTOM_WORKFLOWS: (
        "Focus on unique operational logic, booking automations, and removing "
        "manual data chaos."
    ),
}
_DEFAULT_FOCUS = "Focus on holistic business growth and automation."


def focus_instruction(focus: StrategyFocus | str) -> str:
    try:
        return _FOCUS_INSTRUCTIONS[StrategyFocus(focus)]
    except ValueError:
        return _DEFAULT_FOCUS


def tail_context(text: str, limit: int = PRECEDING_CONTEXT_LIMIT) -> str:
    """Keep only the most recent ``limit`` characters of accumulated narration."""

    if len(text) <= limit:
        return text
    return text[-limit:]


def build_outline_prompt(profile: BusinessProfile) -> str:
    total_steps = profile.total_steps
    focus = profile.strategy_focus.value
    return f"""
Act as a World-Class Growth Strategist from Espacios Agency.
{AGENCY_KNOWLEDGE_BASE}
Target Company: {profile.company_name}
Current Bottleneck: {profile.current_bottleneck}
Desired Growth Goal: {profile.growth_goal}
Strategy Focus: {focus} ({focus_instruction(profile.strategy_focus)})

Generate a {total_steps}-step "Growth Path" roadmap.
1. An executive summary (2-3 sentences) of the transformation.
2. A list of exactly {total_steps} steps, each with a professional title and a strategic goal for that phase.

Return JSON matching this schema:
{{
  "executiveSummary": "string",
  "steps": [{{"title": "string", "goal": "string"}}]
}}
"""


def build_step_prompt(
    profile: BusinessProfile,
    step_index: int,
    total_steps: int,
    title: str,
    goal: str,
    preceding_text: str = "",
) -> str:
    return f"""
You are the Espacios Growth AI. You are delivering a professional strategic briefing for {profile.company_name}.
This is Step {step_index} of {total_steps} in their Growth Roadmap.
Phase: {title}
Objective: {goal}

Context: {focus_instruction(profile.strategy_focus)}
Previous Context: {tail_context(preceding_text)}

Task: Write the spoken narration for this phase. Be authoritative, tactical, and visionary.
Don't just say what to do; say how Espacios executes it. Use terminology like "automation logic," "lead routing," or "conversion systems."
Length: ~150-200 words.

Output strictly the raw narration text. No titles or markdown.
"""


__all__ = [
    "AGENCY_KNOWLEDGE_BASE",
    "PRECEDING_CONTEXT_LIMIT",
    "build_outline_prompt",
    "build_step_prompt",
    "focus_instruction",
    "tail_context",
]
