"""FastAPI dependency injection — wires infrastructure to application layer."""

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from techassist.config import Settings, get_settings
from techassist.application.interfaces.chat_provider import ChatProvider
from techassist.application.services import (
    AliasResolver,
    AssistantService,
    DependencyContextBuilder,
    HierarchyContextBuilder,
    MultiSourceRetriever,
    PromptAssembler,
    QueryAnalyzer,
    RetrievalConfig,
)
from techassist.infrastructure.database.session import get_session_factory
from techassist.infrastructure.database.repositories import (
    PgChunkRepository,
    SQLAlchemyAliasRepository,
    SQLAlchemyDependencyRepository,
    SQLAlchemyEquipmentRepository,
    SQLAlchemySchematicRepository,
)
from techassist.infrastructure.openrouter import OpenRouterClient, OpenRouterEmbeddingProvider

logger = logging.getLogger(__name__)


def _build_chat_provider(settings: Settings) -> ChatProvider | None:
    """OpenRouter chat client, or None when no API key is configured."""
    if not settings.openrouter_api_key.strip():
        logger.warning("OPENROUTER_API_KEY is not configured; deep analysis and answers are disabled.")
        return None
    return OpenRouterClient(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        app_name=settings.openrouter_app_name,
    )


def build_assistant_service(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
) -> AssistantService:
    """Assemble the assistant pipeline over a session factory."""
    config = RetrievalConfig.from_settings(settings)

    equipment_repo = SQLAlchemyEquipmentRepository(session_factory)
    alias_repo = SQLAlchemyAliasRepository(session_factory)
    dependency_repo = SQLAlchemyDependencyRepository(session_factory)

    chat_provider = _build_chat_provider(settings)
    embedding_provider = OpenRouterEmbeddingProvider(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        app_name=settings.openrouter_app_name,
        model=settings.embedding_model,
        model_dimensions=settings.embedding_dimensions,
    )

    dependency_builder = DependencyContextBuilder(dependency_repo)
    hierarchy_builder = HierarchyContextBuilder(equipment_repo)
    retriever = MultiSourceRetriever(
        embedding_provider,
        PgChunkRepository(session_factory),
        schematic_repo=SQLAlchemySchematicRepository(session_factory),
        dependency_builder=dependency_builder,
        hierarchy_builder=hierarchy_builder,
        config=config,
    )

    return AssistantService(
        equipment_repo=equipment_repo,
        alias_resolver=AliasResolver(
            alias_repo, similarity_threshold=config.alias_similarity_threshold
        ),
        analyzer=QueryAnalyzer(
            chat_provider,
            model=settings.analysis_model,
            mode=settings.analysis_mode,
            deep_min_length=settings.deep_analysis_min_length,
        ),
        dependency_builder=dependency_builder,
        hierarchy_builder=hierarchy_builder,
        retriever=retriever,
        assembler=PromptAssembler(),
        chat_provider=chat_provider,
        alias_repo=alias_repo,
        answer_model=settings.answer_model,
    )


def get_assistant_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AssistantService:
    """Provides an AssistantService with its repositories and providers wired up."""
    return build_assistant_service(session_factory, get_settings())
