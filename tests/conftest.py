import os
from typing import Any, Callable, List, Sequence, Union

import pytest
from dotenv import load_dotenv, find_dotenv
from openai import AsyncOpenAI

from autoleads_agent.llm_core import (
    ConversationContext,
    ExecutionContext,
    FinishReason,
    GatewayReply,
    ModelGateway,
    ToolCallRequest,
)
from autoleads_agent.dealership import (
    Car,
    DealershipToolkit,
    InMemoryInventory,
    InMemoryLeadStore,
    InMemoryShowroomDirectory,
    Lead,
    OutboxMediaSender,
    Showroom,
)

# Load environment variables from .env file
env_file = find_dotenv(usecwd=True)
if env_file:
    load_dotenv(env_file)


ScriptStep = Union[GatewayReply, Exception, Callable[[ConversationContext], GatewayReply]]


class ScriptedGateway(ModelGateway):
    """Replays a fixed sequence of replies or errors. The last step repeats once the script runs out."""

    def __init__(self, script: Sequence[ScriptStep], **kwargs: Any) -> None:
        kwargs.setdefault("base_retry_delay", 0.0)
        super().__init__(**kwargs)
        self.script = list(script)
        self.calls = 0
        self.seen: List[List[dict]] = []

    async def _complete_impl(self, context: ConversationContext) -> GatewayReply:
        self.seen.append(context.render())
        step = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step(context)
        return step


def answer(text: str) -> GatewayReply:
    return GatewayReply(finish_reason=FinishReason.ANSWERED, text=text)


def wants(*calls: ToolCallRequest, text: str = None) -> GatewayReply:
    return GatewayReply(finish_reason=FinishReason.WANTS_TOOLS, text=text, tool_calls=calls)


def call(call_id: str, tool_name: str, raw_arguments: str = "{}") -> ToolCallRequest:
    return ToolCallRequest(id=call_id, tool_name=tool_name, raw_arguments=raw_arguments)


@pytest.fixture
def scripted_gateway() -> Callable[..., ScriptedGateway]:
    return ScriptedGateway


@pytest.fixture
def execution_context() -> ExecutionContext:
    return ExecutionContext(tenant_id=1, lead_id=10, customer_phone="6281111111111")


@pytest.fixture
def cars() -> List[Car]:
    return [
        Car(id=1, tenant_id=1, display_code="#a01", brand="Toyota", model="Avanza", year=2020,
            price=165_000_000, color="Hitam", transmission="Matic", km=45_000, fuel_type="Bensin",
            key_features=["Airbag", "Kamera mundur", "Servis rutin", "Ban baru"],
            photos=[f"https://cdn.test/a01-{i}.jpg" for i in range(1, 8)]),
        Car(id=2, tenant_id=1, display_code="A02", brand="Honda", model="Jazz", year=2018,
            price=185_000_000, color="Putih", transmission="Matic", km=62_000, fuel_type="Bensin"),
        Car(id=3, tenant_id=1, display_code="B01", brand="Daihatsu", model="Xenia", year=2019,
            price=140_000_000, color="Silver", transmission="Manual", km=80_000, fuel_type="Bensin"),
        Car(id=4, tenant_id=1, display_code="B02", brand="Toyota", model="Innova", year=2017,
            price=210_000_000, transmission="Manual", status="sold"),
        Car(id=5, tenant_id=2, display_code="A01", brand="Suzuki", model="Ertiga", year=2021,
            price=190_000_000, transmission="Matic"),
    ]


@pytest.fixture
def lead_store() -> InMemoryLeadStore:
    return InMemoryLeadStore([Lead(id=10, tenant_id=1, customer_phone="6281111111111", notes="First contact")])


@pytest.fixture
def media() -> OutboxMediaSender:
    return OutboxMediaSender()


@pytest.fixture
def toolkit(cars: List[Car], lead_store: InMemoryLeadStore, media: OutboxMediaSender) -> DealershipToolkit:
    showroom = Showroom(
        tenant_id=1,
        name="Maju Motor",
        address="Jl. Merdeka 10",
        city="Bandung",
        maps_url="https://maps.test/maju",
        phone="022-123",
        whatsapp_number="6281222",
        business_hours={"mon": "09:00 - 17:00", "sun": "Tutup"},
    )
    return DealershipToolkit(
        inventory=InMemoryInventory(cars),
        leads=lead_store,
        showrooms=InMemoryShowroomDirectory([showroom]),
        media=media,
        photo_delay=0.0,
    )


@pytest.fixture
def openai_client() -> AsyncOpenAI:
    api_key = os.getenv("AUTOLEADS_API_KEY")
    if not api_key:
        api_key = "dummy_key"
    return AsyncOpenAI(api_key=api_key, base_url=os.getenv("AUTOLEADS_API_BASE_URL"), max_retries=0)


@pytest.fixture(scope="session")
def vcr_config() -> dict[str, Any]:
    return {
        "cassette_library_dir": "tests/cassettes",
        "record_mode": os.getenv("VCR_RECORD_MODE", "once"),
        "match_on": ["method", "path", "query"],
        "filter_headers": [
            "authorization",
            "x-api-key",
            "api-key",
        ],
        "filter_query_parameters": ["key", "api_key", "access_token"],
        "decode_compressed_response": True,
    }
