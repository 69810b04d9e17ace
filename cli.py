import json
import logging
import os
from pathlib import Path
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

app = typer.Typer()
groups_app = typer.Typer(help="Manage the Facebook groups that get scraped")
app.add_typer(groups_app, name="groups")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    """Facebook group job post extraction"""
    level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(message)s", handlers=[RichHandler(console=console, show_path=False)])


def _read_posts(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8")


@app.command()
def extract(
    file: Path = typer.Argument(..., help="JSON file holding an array of raw posts"),
    as_json: bool = typer.Option(False, "--json", help="Print extracted jobs as JSON"),
):
    """Run the local extractor on a posts file"""
    from jobscan.extractor import InvalidInputError, extract_job_posts

    posts_json = _read_posts(file)
    try:
        jobs = extract_job_posts(posts_json)
    except InvalidInputError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    if as_json:
        print(json.dumps([job.model_dump(by_alias=True) for job in jobs], indent=2, ensure_ascii=False))
        return

    table = Table(title=f"Extracted Jobs ({len(jobs)})")
    table.add_column("Title")
    table.add_column("Company")
    table.add_column("Location")
    table.add_column("Type")
    table.add_column("Salary")
    table.add_column("Tags")
    for job in jobs:
        table.add_row(
            job.job_title,
            job.company or "-",
            job.location or "-",
            job.employment_type or "-",
            job.salary or "-",
            ", ".join(job.tags),
        )
    console.print(table)


@app.command()
def ingest(
    file: Path = typer.Argument(..., help="JSON file holding an array of raw posts"),
    group: str = typer.Option(None, help="Group ID the posts came from"),
):
    """Store raw posts for later processing"""
    from pydantic import ValidationError
    from jobscan.extractor import InvalidInputError, load_posts
    from jobscan.models import RawPost
    from jobscan.pipeline import db, ingest_posts

    try:
        items = load_posts(_read_posts(file))
    except InvalidInputError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    target = None
    if group:
        target = db.get_group(group)
        if target is None:
            console.print(f"[red]Group with ID {group} not found[/red]")
            raise typer.Exit(code=1)

    posts = []
    for item in items:
        try:
            post = RawPost.model_validate(item)
        except ValidationError:
            continue
        if post.body:
            posts.append(post)

    saved, duplicates = ingest_posts(posts, target)
    console.print(f"Stored {saved} posts, skipped {duplicates} duplicates.")


@app.command()
def scrape(
    group: str = typer.Option(None, help="Only scrape this group ID"),
    max_posts: int = typer.Option(None, help="Max posts per group"),
):
    """Scrape active groups through Apify and store the posts"""
    from jobscan.pipeline import scrape_groups

    try:
        summary = scrape_groups(group, max_posts)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"Scraped {summary['groups']} group(s): {summary['saved']} new posts, "
        f"{summary['duplicates']} duplicates, {summary['failed']} failed"
    )


@app.command()
def process(
    use_ai: bool = typer.Option(False, "--ai", help="Refine results with the external AI service"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without storing"),
    limit: int = typer.Option(None, help="Max posts to process"),
):
    """Extract jobs from pending posts"""
    from jobscan.pipeline import process_pending

    summary = process_pending(use_ai=use_ai, dry_run=dry_run, limit=limit)
    prefix = "[DRY RUN] " if dry_run else ""
    console.print(
        f"{prefix}{summary['posts']} posts: {summary['extracted']} jobs extracted, "
        f"{summary['stored']} stored, {summary['filtered']} filtered out"
    )


@app.command()
def jobs(
    employment_type: str = typer.Option(None, "--type", help="Employment type, e.g. full-time"),
    tag: list[str] = typer.Option(None, help="Require any of these tags"),
    search: str = typer.Option(None, help="Keyword in title, company or post"),
    limit: int = typer.Option(50, help="Max jobs to show"),
):
    """List stored jobs"""
    from jobscan.db import JobDatabase
    from jobscan.config import load_settings
    from jobscan.filters import filter_job

    db = JobDatabase(load_settings().db_path)
    query = {}
    if employment_type:
        query["type"] = {"include": [employment_type]}
    if tag:
        query["tags"] = {"require_any": tag}
    if search:
        query["keywords"] = {"include": [search]}

    matches = [job for job in db.find_jobs() if filter_job(job, query)][:limit]

    table = Table(title=f"Jobs ({len(matches)})")
    table.add_column("Title")
    table.add_column("Company")
    table.add_column("Type")
    table.add_column("Salary")
    table.add_column("URL")
    for job in matches:
        table.add_row(job.job_title, job.company or "-", job.employment_type or "-", job.salary or "-", job.facebook_url)
    console.print(table)


@app.command()
def status():
    """Show dashboard statistics"""
    from jobscan.db import JobDatabase
    from jobscan.config import load_settings

    stats = JobDatabase(load_settings().db_path).get_dashboard_stats()

    table = Table(title="Dashboard")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Total Jobs", str(stats.total_jobs))
    table.add_row("Jobs Today", str(stats.today_jobs))
    table.add_row("Active Groups", str(stats.active_groups))
    table.add_row("Pending Posts", str(stats.pending_posts))
    console.print(table)


@app.command()
def clear_cache(
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete all stored jobs"""
    from jobscan.db import JobDatabase
    from jobscan.config import load_settings

    db = JobDatabase(load_settings().db_path)
    count = db.count_jobs()
    if count == 0:
        console.print("No jobs to clear.")
        return

    if not confirm:
        if not typer.confirm(f"Clear all {count} jobs?"):
            console.print("Aborted.")
            return

    db.clear_jobs()
    console.print(f"Cleared {count} jobs.")


@groups_app.command("add")
def groups_add(
    group_id: str = typer.Argument(...),
    url: str = typer.Argument(...),
    name: str = typer.Option(None, help="Display name"),
    description: str = typer.Option(None),
):
    """Register a group to scrape"""
    from jobscan.db import JobDatabase
    from jobscan.config import load_settings
    from jobscan.models import FacebookGroup

    db = JobDatabase(load_settings().db_path)
    if db.get_group(group_id):
        console.print(f"[red]Group {group_id} already exists[/red]")
        raise typer.Exit(code=1)

    db.add_group(FacebookGroup(group_id=group_id, name=name or group_id, url=url, description=description))
    console.print(f"Added group {group_id}.")


@groups_app.command("list")
def groups_list():
    """List registered groups"""
    from jobscan.db import JobDatabase
    from jobscan.config import load_settings

    table = Table(title="Groups")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Active")
    table.add_column("Posts")
    table.add_column("Last Scraped")
    for group in JobDatabase(load_settings().db_path).find_groups():
        last = group.last_scraped.strftime("%Y-%m-%d %H:%M") if group.last_scraped else "never"
        table.add_row(group.group_id, group.name, "yes" if group.is_active else "no", str(group.total_posts_scraped), last)
    console.print(table)


@groups_app.command("toggle")
def groups_toggle(group_id: str = typer.Argument(...)):
    """Activate or deactivate a group"""
    from jobscan.db import JobDatabase
    from jobscan.config import load_settings

    db = JobDatabase(load_settings().db_path)
    group = db.get_group(group_id)
    if group is None:
        console.print(f"[red]Group {group_id} not found[/red]")
        raise typer.Exit(code=1)

    updated = db.update_group(group_id, is_active=not group.is_active)
    console.print(f"Group {group_id} is now {'active' if updated.is_active else 'inactive'}.")


@groups_app.command("remove")
def groups_remove(group_id: str = typer.Argument(...)):
    """Remove a group"""
    from jobscan.db import JobDatabase
    from jobscan.config import load_settings

    if not JobDatabase(load_settings().db_path).delete_group(group_id):
        console.print(f"[red]Group {group_id} not found[/red]")
        raise typer.Exit(code=1)
    console.print(f"Removed group {group_id}.")


if __name__ == "__main__":
    app()
