"""Wiring of the gateway components from settings."""

from dataclasses import dataclass

from tokengate.core.config import Settings
from tokengate.core.logging import get_logger
from tokengate.services.audit import AuditLogger
from tokengate.services.codec import TokenCodec
from tokengate.services.errors import ErrorTranslator
from tokengate.services.lifecycle import TokenLifecycleManager
from tokengate.services.permissions import PermissionEvaluator
from tokengate.services.pipeline import AuthPipeline
from tokengate.store.base import TokenStore
from tokengate.store.memory import InMemoryTokenStore
from tokengate.store.sql import SQLTokenStore

logger = get_logger("gateway")


@dataclass
class Gateway:
    """The components one running app shares across requests."""

    settings: Settings
    store: TokenStore
    codec: TokenCodec
    audit: AuditLogger
    pipeline: AuthPipeline
    lifecycle: TokenLifecycleManager


def build_store(settings: Settings) -> TokenStore:
    if settings.tokengate_store == "memory":
        return InMemoryTokenStore()
    return SQLTokenStore.from_settings(settings)


def build_gateway(settings: Settings, store: TokenStore | None = None) -> Gateway:
    """Construct every component explicitly; nothing is module-global."""
    store = store or build_store(settings)
    codec = TokenCodec(
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        default_validity=settings.default_token_validity,
    )
    audit = AuditLogger(store)
    pipeline = AuthPipeline(
        codec,
        store,
        audit,
        ErrorTranslator(audit),
        evaluator=PermissionEvaluator(),
    )
    lifecycle = TokenLifecycleManager(
        codec,
        store,
        audit,
        admin_scope=settings.bootstrap_admin_scope_list,
        bootstrap_validity=settings.bootstrap_token_validity,
    )
    logger.debug(f"Gateway built with {type(store).__name__}")
    return Gateway(
        settings=settings,
        store=store,
        codec=codec,
        audit=audit,
        pipeline=pipeline,
        lifecycle=lifecycle,
    )
