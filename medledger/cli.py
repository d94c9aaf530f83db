"""Command Line Interface for MedLedger.

This module provides a Typer CLI over the medical records contract. Every
command is one invocation: it gets its own transaction context and runs against
the state store selected by configuration (ML_STORE_TYPE / ML_DB_PATH). Use a
DuckDB file to keep state between commands.

Examples:
    medledger register-patient Ada Lovelace p1
    medledger create-record r1 p1 d1 f1 '{"bp": "120/80"}'
    medledger grant-access r1 e1 pay-42
    medledger get-record r1 --client-id 'x509::/C=US/CN=e1::/C=US/CN=ca'
    medledger get-record r1 --cert e1.pem
    medledger grants r1
"""

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from medledger.adapters.identity import ClientIdIdentityResolver, X509IdentityResolver
from medledger.adapters.storage import create_state_store
from medledger.adapters.transaction import SystemTransactionContext
from medledger.contract import MedicalRecordsContract
from medledger.domain.ports import IdentityPort, InvocationContext, LedgerError, StateStorePort
from medledger.infrastructure.logging_config import setup_logging
from medledger.infrastructure.settings import settings

app = typer.Typer(
    name="medledger",
    help="MedLedger: medical records with grant-based access control",
    add_completion=False
)
console = Console()
contract = MedicalRecordsContract()


class DocumentKind(str, Enum):
    patients = "patients"
    doctors = "doctors"
    facilities = "facilities"
    entities = "entities"
    records = "records"


EPHEMERAL_STORE_WARNING = (
    "[yellow]⚠[/yellow] Using a non-persistent store: state is discarded when this command exits. "
    "Set ML_STORE_TYPE=duckdb and ML_DB_PATH to keep state between commands."
)


def store_is_ephemeral() -> bool:
    """True if the configured store does not outlive the process."""
    store_config = settings.store_config
    return store_config.store_type == "memory" or store_config.db_path in (None, ":memory:")


def create_store_cli() -> StateStorePort:
    """Create state store based on configuration (CLI wrapper)."""
    if store_is_ephemeral():
        console.print(EPHEMERAL_STORE_WARNING)
    try:
        return create_state_store(settings.store_config)
    except (ValueError, LedgerError) as e:
        console.print(f"[red]✗[/red] Failed to create state store: {str(e)}")
        raise typer.Exit(code=1)


def invoke(operation: str, *args, identity: Optional[IdentityPort] = None):
    """Run one contract operation in a fresh invocation context.

    Ledger errors are printed and turned into exit code 1.
    """
    store = create_store_cli()
    ctx = InvocationContext(
        store=store,
        identity=identity or ClientIdIdentityResolver(None),
        transaction=SystemTransactionContext(),
    )
    try:
        return asyncio.run(getattr(contract, operation)(ctx, *args))
    except LedgerError as e:
        console.print(f"[red]✗[/red] {str(e)}")
        raise typer.Exit(code=1)
    finally:
        store.close()


@app.command("register-patient")
def register_patient(
    first_name: str = typer.Argument(..., help="First name"),
    last_name: str = typer.Argument(..., help="Last name"),
    patient_id: str = typer.Argument(..., help="Patient id (e.g. a hash)"),
) -> None:
    """Register a patient."""
    invoke("register_patient", first_name, last_name, patient_id)
    console.print(f"[green]✓[/green] Registered patient {patient_id}")


@app.command("register-doctor")
def register_doctor(
    first_name: str = typer.Argument(..., help="First name"),
    last_name: str = typer.Argument(..., help="Last name"),
    doctor_id: str = typer.Argument(..., help="Doctor id (e.g. a hash)"),
) -> None:
    """Register a doctor."""
    invoke("register_doctor", first_name, last_name, doctor_id)
    console.print(f"[green]✓[/green] Registered doctor {doctor_id}")


@app.command("register-facility")
def register_facility(
    name: str = typer.Argument(..., help="Facility name"),
    facility_id: str = typer.Argument(..., help="Facility id"),
) -> None:
    """Register a facility."""
    invoke("register_facility", name, facility_id)
    console.print(f"[green]✓[/green] Registered facility {facility_id}")


@app.command("register-entity")
def register_entity(
    name: str = typer.Argument(..., help="Entity name"),
    entity_id: str = typer.Argument(..., help="Entity id"),
) -> None:
    """Register a generic entity that can be granted access."""
    invoke("register_entity", name, entity_id)
    console.print(f"[green]✓[/green] Registered entity {entity_id}")


@app.command("show-patient")
def show_patient(patient_id: str = typer.Argument(..., help="Patient id")) -> None:
    """Show a patient and the record linked to it."""
    patient = invoke("get_patient", patient_id)
    console.print_json(data=patient.to_document())


@app.command("show-doctor")
def show_doctor(doctor_id: str = typer.Argument(..., help="Doctor id")) -> None:
    """Show a doctor."""
    doctor = invoke("get_doctor", doctor_id)
    console.print_json(data=doctor.to_document())


@app.command("create-record")
def create_record(
    record_id: str = typer.Argument(..., help="Record id, used if the patient has no record yet"),
    patient_id: str = typer.Argument(..., help="Patient id"),
    doctor_id: str = typer.Argument(..., help="Doctor id"),
    facility_id: str = typer.Argument(..., help="Facility id"),
    metadata: str = typer.Argument(..., help="JSON-encoded clinical payload"),
) -> None:
    """Create the patient's record, or update it if one already exists."""
    try:
        json.loads(metadata)
    except json.JSONDecodeError:
        console.print("[red]✗[/red] Metadata must be a JSON-encoded value")
        raise typer.Exit(code=1)
    invoke("create_record", record_id, patient_id, doctor_id, facility_id, metadata)
    console.print(f"[green]✓[/green] Record written for patient {patient_id}")


@app.command("grant-access")
def grant_access(
    record_id: str = typer.Argument(..., help="Record id"),
    entity_id: str = typer.Argument(..., help="Grantee id"),
    payment_tx_id: str = typer.Argument(..., help="Payment transaction id"),
) -> None:
    """Grant an entity read access to a record."""
    invoke("grant_access", record_id, entity_id, payment_tx_id)
    console.print(f"[green]✓[/green] Access granted to {entity_id} on {record_id}")


@app.command("get-record")
def get_record(
    record_id: str = typer.Argument(..., help="Record id"),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", "-c", help="Caller client identity (x509::<subject>::<issuer>)"
    ),
    cert: Optional[Path] = typer.Option(
        None, "--cert", exists=True, dir_okay=False, readable=True, help="Caller certificate (PEM)"
    ),
) -> None:
    """Read a record as the given caller."""
    if (client_id is None) == (cert is None):
        console.print("[red]✗[/red] Pass exactly one of --client-id or --cert")
        raise typer.Exit(code=1)

    if cert is not None:
        try:
            identity = X509IdentityResolver(cert.read_bytes())
        except LedgerError as e:
            console.print(f"[red]✗[/red] {str(e)}")
            raise typer.Exit(code=1)
    else:
        identity = ClientIdIdentityResolver(client_id)

    result = invoke("get_record", record_id, identity=identity)
    if result.is_failure():
        console.print(f"[yellow]⚠[/yellow] {result.error}")
        raise typer.Exit(code=2)
    console.print_json(data=result.value.model_dump(by_alias=True))


@app.command("grants")
def list_grants(record_id: str = typer.Argument(..., help="Record id")) -> None:
    """List the grants issued for a record."""
    results = invoke("get_grants_for_record", record_id)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Tx Id", style="cyan")
    table.add_column("Entity")
    table.add_column("Payment Tx")
    table.add_column("Granted At")
    for result in results:
        table.add_row(
            result.key,
            result.record.get("entityId", ""),
            result.record.get("paymentTxId", ""),
            result.record.get("createdAt", ""),
        )
    console.print(table)
    console.print(f"[dim]{len(results)} grants[/dim]")


@app.command("list")
def list_documents(kind: DocumentKind = typer.Argument(..., help="Kind of document to list")) -> None:
    """List every stored document of one kind."""
    results = invoke(f"get_all_{kind.value}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Document")
    for result in results:
        table.add_row(result.key, json.dumps(result.record))
    console.print(table)
    console.print(f"[dim]{len(results)} {kind.value}[/dim]")


@app.command()
def info() -> None:
    """Display system information and configuration."""
    console.print("[bold blue]System Information[/bold blue]\n")

    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Application:", settings.app_name)
    info_table.add_row("Version:", settings.app_version)
    info_table.add_row("Store Type:", settings.store_config.store_type)
    if settings.store_config.store_type == "duckdb":
        info_table.add_row("Database Path:", settings.store_config.db_path or ":memory:")
        info_table.add_row("Table:", settings.store_config.table_name)
    info_table.add_row("Log Level:", settings.log_level)

    console.print(info_table)
    if store_is_ephemeral():
        console.print()
        console.print(EPHEMERAL_STORE_WARNING)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    version: bool = typer.Option(False, "--version", help="Show version information"),
) -> None:
    """MedLedger: medical records with grant-based access control."""
    if version:
        console.print(f"MedLedger v{settings.app_version}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()
    setup_logging(use_json=settings.json_logs, log_level="DEBUG" if verbose else "WARNING")
    logging.getLogger(__name__).debug("Verbose logging enabled")


if __name__ == "__main__":
    app()
