"""CLI application entry point."""

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from gestao_imoveis.core.config import get_settings
from gestao_imoveis.core.exceptions import BillingError
from gestao_imoveis.core.logging import configure_logging, get_logger
from gestao_imoveis.domain.entities.billing import GenerationMode
from gestao_imoveis.domain.services.audit_service import SYSTEM_ACTOR, AuditService
from gestao_imoveis.domain.services.contract_service import ContractService
from gestao_imoveis.infrastructure.database.base import SessionLocal, get_session, init_db

# Load environment variables from .env file
dotenv_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path)

# Configure logging on module import
configure_logging()
logger = get_logger(__name__)


@click.group()
@click.version_option(version="1.0.0")
def app() -> None:
    """Gestão de Imóveis - contratos de locação e parcelas."""
    pass


@app.command()
def init() -> None:
    """Inicializa o banco de dados."""
    click.echo("🔧 Inicializando banco de dados...")
    try:
        init_db()
        click.echo("✅ Banco de dados inicializado com sucesso!")
    except Exception as e:
        click.echo(f"❌ Erro ao inicializar banco: {e}", err=True)
        raise click.Abort()


@app.command("gerar-parcelas")
@click.argument("contrato_id")
@click.option(
    "--modo",
    type=click.Choice([m.value for m in GenerationMode]),
    default=GenerationMode.NEXT.value,
    show_default=True,
    help="next: próxima parcela; all: todas até o fim do contrato; manual: vencimento e valor informados",
)
@click.option(
    "--vencimento",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Data de vencimento (obrigatória no modo manual, formato: YYYY-MM-DD)",
)
@click.option("--valor", type=click.FLOAT, help="Valor base (modo manual)")
def gerar_parcelas(
    contrato_id: str,
    modo: str,
    vencimento: Optional[datetime],
    valor: Optional[float],
) -> None:
    """Gera parcelas para um contrato."""
    click.echo(f"🧾 Gerando parcelas ({modo}) para o contrato {contrato_id}...")

    with get_session() as db:
        service = ContractService(db, AuditService(SessionLocal))
        try:
            generated = service.generate_installments(
                contrato_id,
                mode=modo,
                data_vencimento=vencimento.date() if vencimento else None,
                valor=Decimal(str(valor)) if valor is not None else None,
                actor=SYSTEM_ACTOR,
            )
        except BillingError as e:
            click.echo(f"❌ {e.message}", err=True)
            raise click.Abort()

        if not generated:
            click.echo("⚠️  Nenhuma parcela gerada")
            return

        for parcela in generated:
            click.echo(
                f"   • #{parcela.numero_parcela} {parcela.descricao} | "
                f"vencimento {parcela.data_vencimento.isoformat()} | R$ {parcela.valor_total:.2f}"
            )
        click.echo(f"\n✅ {len(generated)} parcela(s) gerada(s)")


@app.command()
@click.argument("contrato_id")
@click.confirmation_option(prompt="Encerrar o contrato e cancelar as parcelas pendentes?")
def encerrar(contrato_id: str) -> None:
    """Encerra um contrato, libera a unidade e cancela parcelas pendentes."""
    with get_session() as db:
        service = ContractService(db, AuditService(SessionLocal))
        try:
            _, cancelled = service.close(contrato_id, actor=SYSTEM_ACTOR)
        except BillingError as e:
            click.echo(f"❌ {e.message}", err=True)
            raise click.Abort()

    click.echo(f"✅ Contrato encerrado. Parcelas canceladas: {cancelled}")


@app.command()
def config() -> None:
    """Mostra a configuração atual."""
    settings = get_settings()

    click.echo("⚙️  Configuração Atual:\n")
    click.echo(f"Environment:    {settings.environment}")
    click.echo(f"Debug:          {settings.debug}")
    click.echo(f"Log Level:      {settings.log_level}")
    click.echo(f"\nDatabase:       {settings.database_url}")
    click.echo(f"\nTimezone:       {settings.timezone}")
    click.echo(f"Max Parcelas:   {settings.max_generated_installments}")


if __name__ == "__main__":
    app()
