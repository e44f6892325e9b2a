"""Crisis resources and crisis response construction.

Shared by the SafetyMonitor and the CrisisDetector so both produce the
same resource ordering:
    [Emergency Services (immediate only)] + core + specialized
"""
from typing import Tuple

from mindbridge.shared.models import CrisisResource, CrisisResponse

EMERGENCY_SERVICES = CrisisResource(
    name="Emergency Services",
    phone="911",
    description="For immediate life-threatening emergencies",
    available_24h=True,
)

CORE_RESOURCES: Tuple[CrisisResource, ...] = (
    CrisisResource(
        name="National Suicide Prevention Lifeline",
        phone="988",
        description="24/7 crisis support and suicide prevention",
        available_24h=True,
    ),
    CrisisResource(
        name="Crisis Text Line",
        phone="741741",
        description="Text HOME for 24/7 crisis support via text",
        available_24h=True,
    ),
    CrisisResource(
        name="SAMHSA National Helpline",
        phone="1-800-662-4357",
        description="Treatment referral and information for mental health and substance use",
        available_24h=True,
    ),
)

SPECIALIZED_RESOURCES: Tuple[CrisisResource, ...] = (
    CrisisResource(
        name="National Domestic Violence Hotline",
        phone="1-800-799-7233",
        description="Support for domestic violence situations",
        available_24h=True,
    ),
    CrisisResource(
        name="Trans Lifeline",
        phone="877-565-8860",
        description="Peer support run by and for trans people",
        available_24h=False,
    ),
    CrisisResource(
        name="LGBT National Hotline",
        phone="1-888-843-4564",
        description="Confidential peer support for LGBTQ+ people",
        available_24h=False,
    ),
    CrisisResource(
        name="Veterans Crisis Line",
        phone="988 (Press 1)",
        description="Crisis support for veterans, service members and their families",
        available_24h=True,
    ),
)

IMMEDIATE_MESSAGE = (
    "I'm very concerned about your safety right now. Please reach out for "
    "immediate help: call 911 or go to your nearest emergency room, or call "
    "or text 988 to reach the Suicide & Crisis Lifeline."
)

SUPPORTIVE_MESSAGE = (
    "I notice you might be going through a difficult time. Talking with a "
    "mental health professional or a crisis counselor can really help, and "
    "the resources below are available to you."
)


def get_crisis_resources(immediate: bool) -> Tuple[CrisisResource, ...]:
    """Return crisis resources in display order.

    Args:
        immediate: Whether the user may be in immediate danger

    Returns:
        Emergency Services first when immediate, then core and
        specialized resources
    """
    leading = (EMERGENCY_SERVICES,) if immediate else ()
    return leading + CORE_RESOURCES + SPECIALIZED_RESOURCES


def build_crisis_response(immediate: bool) -> CrisisResponse:
    """Build the crisis override payload for the given urgency."""
    return CrisisResponse(
        is_immediate=immediate,
        resources=get_crisis_resources(immediate),
        message=IMMEDIATE_MESSAGE if immediate else SUPPORTIVE_MESSAGE,
        should_end_session=immediate,
    )


def format_crisis_message(response: CrisisResponse) -> str:
    """Render a crisis response as user-facing text."""
    lines = [response.message, ""]
    for resource in response.resources:
        lines.append(f"• {resource.name}: {resource.phone}")
        lines.append(f"  {resource.description}")
        if resource.available_24h:
            lines.append("  Available: 24/7")
    lines.append("")

    if response.is_immediate:
        lines.append(
            "If you are in immediate danger, please call 911 or go to your "
            "nearest emergency room."
        )
        lines.append("Your life has value, and help is available right now.")
    else:
        lines.append("You don't have to face this alone.")
        lines.append("Reaching out for support is a sign of strength.")

    return "\n".join(lines)
