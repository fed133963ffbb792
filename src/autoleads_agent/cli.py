"""Interactive chat against the configured endpoint using an in-memory showroom."""

import asyncio
import logging
from typing import List, Optional

from .agent import CustomerChatAgent
from .dealership import (
    DealershipToolkit,
    InMemoryInventory,
    InMemoryLeadStore,
    InMemoryShowroomDirectory,
    Lead,
    OutboxMediaSender,
    Showroom,
    sample_inventory,
)
from .llm_core import AgentSettings, BaseTurn, ExecutionContext, ToolRegistry, setup_logging
from .llm_impl import OpenAIGateway

DEMO_TENANT_ID = 1
DEMO_LEAD_ID = 1
DEMO_PHONE = "6281234567890"


def demo_toolkit() -> DealershipToolkit:
    """A toolkit backed by sample inventory, one lead and one showroom."""
    showroom = Showroom(
        tenant_id=DEMO_TENANT_ID,
        name="AutoLeads Showroom",
        address="Jl. Sudirman No. 1",
        city="Jakarta",
        phone="021-555-0100",
        whatsapp_number=DEMO_PHONE,
    )
    return DealershipToolkit(
        inventory=InMemoryInventory(sample_inventory(DEMO_TENANT_ID)),
        leads=InMemoryLeadStore([Lead(id=DEMO_LEAD_ID, tenant_id=DEMO_TENANT_ID, customer_phone=DEMO_PHONE)]),
        showrooms=InMemoryShowroomDirectory([showroom]),
        media=OutboxMediaSender(),
        photo_delay=0.0,
    )


def build_agent(settings: AgentSettings, toolkit: Optional[DealershipToolkit] = None) -> CustomerChatAgent:
    """Wire an agent: an OpenAI-compatible gateway plus the dealership tools."""
    registry = ToolRegistry()
    (toolkit or demo_toolkit()).register_into(registry)
    return CustomerChatAgent(gateway=OpenAIGateway.from_settings(settings), registry=registry, settings=settings)


async def main() -> None:
    """
    Main function to run the CLI chat.
    """
    print("Welcome to the AutoLeads customer chat!")

    settings = AgentSettings.from_env()
    if settings.api_key is None:
        print("Error: AUTOLEADS_API_KEY not found in environment variables.")
        return

    agent = build_agent(settings)
    execution_context = ExecutionContext(tenant_id=DEMO_TENANT_ID, lead_id=DEMO_LEAD_ID, customer_phone=DEMO_PHONE)
    print(f"Using model '{settings.model}' at {settings.api_base_url}.")

    history: List[BaseTurn] = []

    print("\nStart chatting! Type 'exit' or 'quit' to stop.")
    while True:
        user_input = (await asyncio.to_thread(input, "\nYou: ")).strip()
        if user_input.lower() in ["exit", "quit"]:
            print("Goodbye!")
            break

        if not user_input:
            continue

        reply = await agent.respond(user_input, execution_context, history)
        print(f"Assistant: {reply.text}")
        history = reply.history


def run() -> None:
    setup_logging(level=logging.WARNING)
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, EOFError):
        print("\nGoodbye!")


if __name__ == "__main__":
    run()
