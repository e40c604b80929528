"""
Wiring for a Gemini-backed orchestrator, configured from settings
"""
from google import genai

from agents import ReasoningAgent, SynthesisAgent, build_default_registry
from config import settings
from services import GeminiService
from utils import get_logger, get_supabase_client
from .events import EventEmitter, Observer
from .executor import StepExecutor
from .orchestrator import Orchestrator
from .pacing import fixed_pacing
from .planner import GeminiPlanner
from .store import ConversationStore, InMemoryConversationStore, SupabaseConversationStore

logger = get_logger(__name__)


def create_store() -> ConversationStore:
    if settings.use_supabase():
        return SupabaseConversationStore(get_supabase_client())
    logger.info("Supabase not configured; conversations are kept in memory only")
    return InMemoryConversationStore()


def create_orchestrator(
    store: ConversationStore | None = None,
    observers: list[Observer] | None = None,
) -> Orchestrator:
    """Build an Orchestrator with the Gemini planner and agents"""
    if not settings.GEMINI_API_KEY:
        raise ValueError("GEMINI_API_KEY not configured")

    client = genai.Client(api_key=settings.GEMINI_API_KEY)
    service = GeminiService(client)
    events = EventEmitter(observers)

    executor = StepExecutor(
        registry=build_default_registry(service),
        synthesizer=SynthesisAgent(service),
        intermediate=ReasoningAgent(service),
        pacing=fixed_pacing(settings.STEP_PACING_SECONDS),
        step_timeout=settings.STEP_TIMEOUT_SECONDS,
        events=events,
    )
    return Orchestrator(
        planner=GeminiPlanner(client),
        executor=executor,
        store=store or create_store(),
        cycle_budget=settings.PLANNING_CYCLES,
        events=events,
    )
