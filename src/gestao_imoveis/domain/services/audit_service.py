"""Audit sink for recording user actions."""

from dataclasses import dataclass
from typing import Any, Callable, Optional
from uuid import uuid4

from pydantic_core import to_jsonable_python
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from gestao_imoveis.core.logging import get_logger
from gestao_imoveis.infrastructure.database.models import AuditLog

logger = get_logger(__name__)


class AuditAction:
    """Audit action verbs."""

    CREATE = "CRIAR"
    UPDATE = "ATUALIZAR"
    DELETE = "EXCLUIR"
    CLOSE = "ENCERRAR"
    RENEW = "RENOVAR"
    GENERATE = "GERAR_PARCELAS"
    BULK_UPDATE = "ATUALIZAR_LOTE"


class AuditEntity:
    """Audited entity kinds."""

    CONTRACT = "Contrato"
    INSTALLMENT = "Parcela"


@dataclass(frozen=True)
class ActorContext:
    """Who triggered an operation, as seen by the HTTP layer."""

    usuario_id: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None


SYSTEM_ACTOR = ActorContext(usuario_id="system")


class AuditService:
    """Fire-and-forget audit sink.

    Each record is written in its own session so it never shares fate with the
    operation being audited: callers invoke it after their own commit, and any
    failure here is logged and swallowed.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def record(
        self,
        actor: Optional[ActorContext],
        acao: str,
        entidade: str,
        entidade_id: Optional[str] = None,
        dados_antigos: Optional[dict[str, Any]] = None,
        dados_novos: Optional[dict[str, Any]] = None,
        detalhes: Optional[str] = None,
    ) -> None:
        """Record an audit log entry.

        Args:
            actor: Request context of the user who performed the action
            acao: Action verb (see AuditAction)
            entidade: Entity kind (see AuditEntity)
            entidade_id: ID of the entity affected
            dados_antigos: State before the change
            dados_novos: State after the change
            detalhes: Human-readable summary
        """
        actor = actor or SYSTEM_ACTOR
        try:
            session = self.session_factory()
            try:
                session.add(
                    AuditLog(
                        id=str(uuid4()),
                        usuario_id=actor.usuario_id,
                        acao=acao,
                        entidade=entidade,
                        entidade_id=entidade_id,
                        dados_antigos=to_jsonable_python(dados_antigos) if dados_antigos else None,
                        dados_novos=to_jsonable_python(dados_novos) if dados_novos else None,
                        detalhes=detalhes,
                        ip=actor.ip,
                        user_agent=actor.user_agent,
                    )
                )
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()
        except Exception as e:
            logger.error(
                "Failed to write audit log",
                acao=acao,
                entidade=entidade,
                entidade_id=entidade_id,
                error=str(e),
            )


def snapshot(instance: Any) -> dict[str, Any]:
    """Column values of an ORM instance, for dados_antigos/dados_novos."""
    mapper = inspect(instance).mapper
    return {attr.key: getattr(instance, attr.key) for attr in mapper.column_attrs}
