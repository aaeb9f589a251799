"""Släktträd CLI - Main entry point.

This module provides the command-line interface: running the backend and
talking to it for CSV imports and exports.
"""

import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from slakttrad.client import TreeClient
from slakttrad.config import settings
from slakttrad.csvio import (
    PersonImportPreview,
    commit_people,
    commit_relations,
    count_importable,
    export_file_names,
    match_names,
    people_csv,
    preview_people_csv,
    preview_relations_csv,
    read_csv_file,
    relations_csv,
)
from slakttrad.errors import SlakttradError
from slakttrad.matching import NameMatch, NameMatcher, full_name, name_key
from slakttrad.relation_types import relation_label
from slakttrad.storage.sqlite import FamilyTreeDatabase

app = typer.Typer(
    name="slakttrad",
    help="Släktträd - family trees with people, relations and CSV import/export",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _client(api: str, token: str | None) -> TreeClient:
    if not token:
        console.print("[red]No access token. Run 'slakttrad login' and set API_TOKEN.[/red]")
        raise typer.Exit(1)
    return TreeClient(api, token=token)


def _fail(error: SlakttradError) -> None:
    console.print(f"[red]Error: {escape(error.message)}[/red]\n")
    raise typer.Exit(1)


def _print_warnings(warnings: list[str]) -> None:
    if not warnings:
        return
    console.print(f"[yellow]{len(warnings)} warning(s):[/yellow]")
    for warning in warnings:
        console.print(f"  [yellow]•[/yellow] {escape(warning)}")
    console.print()


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
    )


@app.command()
def serve(
    host: str = typer.Option(settings.host, "--host", help="Interface to bind"),
    port: int = typer.Option(settings.port, "--port", help="Port to listen on"),
    env: str = typer.Option("development", "--env", help="Config: development or production"),
) -> None:
    """Run the REST backend."""
    from slakttrad.backend.app import create_app

    try:
        backend = create_app(env)
    except ValueError as e:
        console.print(f"[red]Could not start backend: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(f"\n[bold cyan]Släktträd backend[/bold cyan] on http://{host}:{port}\n")
    backend.run(host=host, port=port, debug=env == "development")


@app.command("init-db")
def init_db(
    database_url: str = typer.Option(
        settings.get_database_url(), "--db", help="SQLAlchemy database URL"
    ),
) -> None:
    """Create the database tables."""
    FamilyTreeDatabase(database_url=database_url)
    console.print(f"[bold green]✓ Database ready:[/bold green] {database_url}\n")


@app.command()
def stats(
    database_url: str = typer.Option(
        settings.get_database_url(), "--db", help="SQLAlchemy database URL"
    ),
) -> None:
    """Display statistics about the database."""
    console.print("\n[bold cyan]Släktträd - Database Statistics[/bold cyan]\n")

    db = FamilyTreeDatabase(database_url=database_url)
    db_stats = db.get_stats()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="dim")
    table.add_column("Count", justify="right")

    for key, value in db_stats.items():
        table.add_row(key.replace("_", " ").title(), str(value))

    console.print(table)
    console.print()


@app.command()
def register(
    email: str = typer.Argument(..., help="Email address"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True
    ),
    display_name: str | None = typer.Option(None, "--display-name", help="Name shown in the app"),
    api: str = typer.Option(settings.api_base, "--api", help="API base URL"),
) -> None:
    """Create an account and print its access token."""
    client = TreeClient(api)
    try:
        token = client.register(email, password, display_name)
    except SlakttradError as e:
        _fail(e)

    console.print("[bold green]✓ Account created.[/bold green] Access token:\n")
    console.print(token)
    console.print("\n[dim]Set API_TOKEN in .env to use it with the other commands.[/dim]\n")


@app.command()
def login(
    email: str = typer.Argument(..., help="Email address"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
    api: str = typer.Option(settings.api_base, "--api", help="API base URL"),
) -> None:
    """Log in and print an access token."""
    client = TreeClient(api)
    try:
        token = client.login(email, password)
    except SlakttradError as e:
        _fail(e)

    console.print(token)


@app.command()
def trees(
    api: str = typer.Option(settings.api_base, "--api", help="API base URL"),
    token: str | None = typer.Option(settings.api_token, "--token", help="Access token"),
) -> None:
    """List your family trees."""
    client = _client(api, token)
    try:
        items = client.list_trees()
    except SlakttradError as e:
        _fail(e)

    if not items:
        console.print("[yellow]No trees yet. Create one with 'slakttrad create-tree'.[/yellow]\n")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Updated", style="dim")
    for item in items:
        table.add_row(str(item["id"]), escape(item["name"]), item.get("updated_at") or "")
    console.print(table)


@app.command("create-tree")
def create_tree(
    name: str = typer.Argument(..., help="Tree name"),
    api: str = typer.Option(settings.api_base, "--api", help="API base URL"),
    token: str | None = typer.Option(settings.api_token, "--token", help="Access token"),
) -> None:
    """Create a family tree."""
    client = _client(api, token)
    try:
        tree = client.create_tree(name)
    except SlakttradError as e:
        _fail(e)
    console.print(f"[bold green]✓ Created tree {escape(tree['name'])}[/bold green] (ID: {tree['id']})\n")


@app.command()
def whoami(
    api: str = typer.Option(settings.api_base, "--api", help="API base URL"),
    token: str | None = typer.Option(settings.api_token, "--token", help="Access token"),
) -> None:
    """Show the account behind the access token."""
    client = _client(api, token)
    try:
        user = client.me()
    except SlakttradError as e:
        _fail(e)

    console.print(f"{escape(user['email'])} (ID: {user['id']})")
    if user.get("display_name"):
        console.print(f"[dim]{escape(user['display_name'])}[/dim]")


@app.command("rename-tree")
def rename_tree(
    tree_id: int = typer.Argument(..., help="Tree ID"),
    name: str = typer.Argument(..., help="New tree name"),
    api: str = typer.Option(settings.api_base, "--api", help="API base URL"),
    token: str | None = typer.Option(settings.api_token, "--token", help="Access token"),
) -> None:
    """Rename a family tree."""
    client = _client(api, token)
    try:
        tree = client.rename_tree(tree_id, name)
    except SlakttradError as e:
        _fail(e)
    console.print(f"[bold green]✓ Renamed tree {tree['id']} to {escape(tree['name'])}[/bold green]\n")


@app.command("delete-tree")
def delete_tree(
    tree_id: int = typer.Argument(..., help="Tree ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Delete without asking"),
    api: str = typer.Option(settings.api_base, "--api", help="API base URL"),
    token: str | None = typer.Option(settings.api_token, "--token", help="Access token"),
) -> None:
    """Delete a family tree with all its people and relations."""
    client = _client(api, token)
    try:
        tree = client.get_tree(tree_id)
    except SlakttradError as e:
        _fail(e)

    if not yes and not typer.confirm(
        f"Delete tree {tree['name']} with all its people and relations?"
    ):
        raise typer.Exit(0)

    try:
        client.delete_tree(tree_id)
    except SlakttradError as e:
        _fail(e)
    console.print(f"[bold green]✓ Deleted tree {escape(tree['name'])}[/bold green]\n")


def _people_table(preview: PersonImportPreview) -> Table:
    table = Table(show_header=True, header_style="bold cyan", title="Preview")
    table.add_column("Row", justify="right", style="dim")
    table.add_column("Name")
    table.add_column("Gender")
    table.add_column("Born", justify="right")
    table.add_column("Died", justify="right")
    table.add_column("Place")
    for row in preview.rows:
        table.add_row(
            str(row.line),
            escape(row.full_name),
            row.gender or "",
            str(row.birth_year or ""),
            str(row.death_year or ""),
            escape(row.place_label or (f"{row.lat}, {row.lng}" if row.lat is not None else "")),
        )
    return table


def _create_people(client: TreeClient, tree_id: int, preview: PersonImportPreview) -> int:
    """Create the preview's people with a progress bar and get the count created."""
    with _progress() as progress:
        task = progress.add_task("Creating people...", total=preview.accepted_count)
        try:
            created = commit_people(
                client,
                tree_id,
                preview,
                on_progress=lambda done, total: progress.update(task, completed=done),
            )
        except SlakttradError as e:
            progress.stop()
            _fail(e)
    return len(created)


@app.command("import-people")
def import_people(
    csv_file: Path = typer.Argument(..., help="People CSV file", exists=True, dir_okay=False),
    tree_id: int = typer.Option(..., "--tree", "-t", help="Target tree ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Import without asking"),
    api: str = typer.Option(settings.api_base, "--api", help="API base URL"),
    token: str | None = typer.Option(settings.api_token, "--token", help="Access token"),
) -> None:
    """Import people from a semicolon-separated CSV file.

    Required columns: förnamn, efternamn. Optional: kön, födelseår, dödsår,
    platsnamn, lat, lng. Rows are previewed first and then created one by one;
    the import stops at the first failing row.
    """
    console.print("\n[bold cyan]Släktträd - Import People[/bold cyan]\n")

    try:
        preview = preview_people_csv(read_csv_file(csv_file))
    except SlakttradError as e:
        _fail(e)

    console.print(_people_table(preview))
    console.print(f"\n[bold]{preview.accepted_count}[/bold] row(s) accepted.\n")
    _print_warnings(preview.warnings)

    if not yes and not typer.confirm(f"Import {preview.accepted_count} people into tree {tree_id}?"):
        raise typer.Exit(0)

    client = _client(api, token)
    created = _create_people(client, tree_id, preview)
    console.print(f"\n[bold green]✓ Imported {created} people.[/bold green]\n")


def _describe(person: dict[str, Any]) -> str:
    """Format a person as 'ID 3: Erik Lund (1901-1980)'; unknown years show as '?'."""
    years = "-".join(
        "?" if person.get(key) is None else str(person[key]) for key in ("birth_year", "death_year")
    )
    return f"ID {person['id']}: {full_name(person)} ({years})"


def _resolve_interactively(
    result: NameMatch,
    matcher: NameMatcher,
    people: list[dict[str, Any]],
    names: list[str],
) -> None:
    """Ask the user for a person id for each of the given unresolved names."""
    people_by_id = {person["id"]: person for person in people}
    for name in names:
        console.print(f"\n[bold cyan]{escape(name)}[/bold cyan]")
        candidates = result.ambiguous.get(name, [])
        if candidates:
            console.print("  [yellow]Several people share this name:[/yellow]")
            for person_id in candidates:
                console.print(f"    {escape(_describe(people_by_id[person_id]))}")
        suggestions = matcher.suggest(name)
        if suggestions:
            console.print("  [dim]Suggestions:[/dim]")
            for suggestion in suggestions:
                console.print(f"    {escape(str(suggestion))}")

        while True:
            answer = typer.prompt("  Person ID (empty = skip)", default="", show_default=False)
            answer = answer.strip()
            if not answer:
                console.print("  [dim]Skipped[/dim]")
                break
            if answer.isdigit() and int(answer) in people_by_id:
                result.resolve(name, int(answer))
                break
            console.print("  [red]Unknown person ID[/red]")


@app.command("import-relations")
def import_relations(
    csv_file: Path = typer.Argument(..., help="Relations CSV file", exists=True, dir_okay=False),
    tree_id: int = typer.Option(..., "--tree", "-t", help="Target tree ID"),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Import without asking; unresolved names are skipped"
    ),
    people_csv_file: Path | None = typer.Option(
        None,
        "--people-csv",
        help="People CSV to import first; names are matched again afterwards",
        exists=True,
        dir_okay=False,
    ),
    skip: list[str] | None = typer.Option(
        None, "--skip", help="Name whose rows are left out (repeatable)"
    ),
    api: str = typer.Option(settings.api_base, "--api", help="API base URL"),
    token: str | None = typer.Option(settings.api_token, "--token", help="Access token"),
) -> None:
    """Import relations from a semicolon-separated CSV file.

    Required columns: person_a, relationstyp, person_b (or person_a_namn, typ,
    person_b_namn). Names are matched against the people already in the tree;
    names that match nobody, or several people, are resolved by hand. With
    --people-csv the people file is imported first and the still unresolved
    names are matched against the new people.
    """
    console.print("\n[bold cyan]Släktträd - Import Relations[/bold cyan]\n")

    client = _client(api, token)
    try:
        preview = preview_relations_csv(read_csv_file(csv_file))
        people = client.list_people(tree_id)
    except SlakttradError as e:
        _fail(e)

    result = match_names(preview, people)

    console.print(
        f"[bold]{preview.accepted_count}[/bold] row(s) accepted, "
        f"[bold]{len(result.mapping)}[/bold] of {len(preview.names)} name(s) matched.\n"
    )
    _print_warnings(preview.warnings)

    if people_csv_file is not None:
        try:
            people_preview = preview_people_csv(read_csv_file(people_csv_file))
        except SlakttradError as e:
            _fail(e)
        console.print(_people_table(people_preview))
        _print_warnings(people_preview.warnings)
        if not yes and not typer.confirm(
            f"Import {people_preview.accepted_count} people into tree {tree_id} first?"
        ):
            raise typer.Exit(0)
        created = _create_people(client, tree_id, people_preview)
        try:
            people = client.list_people(tree_id)
        except SlakttradError as e:
            _fail(e)
        before = len(result.mapping)
        NameMatcher(people).auto_fill(result)
        console.print(
            f"\n[bold green]✓ Imported {created} people[/bold green], "
            f"{len(result.mapping) - before} more name(s) matched.\n"
        )

    matcher = NameMatcher(people)
    skipped = {name_key(name) for name in skip or []}
    pending = [name for name in result.unresolved if name_key(name) not in skipped]
    if pending and not yes:
        _resolve_interactively(result, matcher, people, pending)
    for name in preview.names:
        if name_key(name) in skipped:
            result.clear(name)

    names_by_id = {person["id"]: full_name(person) for person in people}
    table = Table(show_header=True, header_style="bold cyan", title="Preview")
    table.add_column("Row", justify="right", style="dim")
    table.add_column("Person A")
    table.add_column("Relation")
    table.add_column("Person B")

    def name_cell(name: str) -> str:
        person_id = result.mapping.get(name)
        if person_id is None:
            return f"[red]{escape(name)} ?[/red]"
        return f"{escape(names_by_id[person_id])} ({person_id})"

    for row in preview.rows:
        table.add_row(
            str(row.line),
            name_cell(row.a_name),
            relation_label(row.relation_type),
            name_cell(row.b_name),
        )
    console.print(table)

    total = count_importable(preview, result.mapping)
    console.print(f"\n[bold]{total}[/bold] relation(s) can be imported.\n")
    if total == 0:
        console.print("[red]Nothing to import (unmatched names or self-relations).[/red]\n")
        raise typer.Exit(1)

    if not yes and not typer.confirm(f"Import {total} relations into tree {tree_id}?"):
        raise typer.Exit(0)

    with _progress() as progress:
        task = progress.add_task("Creating relations...", total=total)
        try:
            created = commit_relations(
                client,
                tree_id,
                preview,
                result.mapping,
                on_progress=lambda done, total: progress.update(task, completed=done),
            )
        except SlakttradError as e:
            progress.stop()
            _fail(e)

    console.print(f"\n[bold green]✓ Imported {len(created)} relations.[/bold green]\n")


@app.command()
def export(
    tree_id: int = typer.Option(..., "--tree", "-t", help="Tree ID"),
    output_dir: Path = typer.Option(Path("."), "--out", "-o", help="Directory for the CSV files"),
    api: str = typer.Option(settings.api_base, "--api", help="API base URL"),
    token: str | None = typer.Option(settings.api_token, "--token", help="Access token"),
) -> None:
    """Export a tree to a people CSV and a relations CSV."""
    client = _client(api, token)
    try:
        tree = client.get_tree(tree_id)
        people = client.list_people(tree_id)
        relations = client.list_relations(tree_id)
    except SlakttradError as e:
        _fail(e)

    output_dir.mkdir(parents=True, exist_ok=True)
    people_name, relations_name = export_file_names(tree["name"])
    for filename, content in (
        (people_name, people_csv(people)),
        (relations_name, relations_csv(relations, people)),
    ):
        with (output_dir / filename).open("w", encoding="utf-8", newline="") as f:
            f.write(content)

    console.print(f"\n[bold cyan]Exported:[/bold cyan] {escape(tree['name'])}\n")
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("File")
    table.add_column("Rows", justify="right")
    table.add_row(str(output_dir / people_name), str(len(people)))
    table.add_row(str(output_dir / relations_name), str(len(relations)))
    console.print(table)
    console.print()


@app.command()
def version() -> None:
    """Show version information."""
    from slakttrad import __version__

    console.print(f"\n[bold cyan]Släktträd[/bold cyan] version {__version__}\n")


if __name__ == "__main__":
    app()
