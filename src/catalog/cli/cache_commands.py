"""Cache administration CLI commands."""

import typer
from rich.table import Table

from src.catalog.core.cache import keys

from .utils import cache_service, console, product_service

cache_app = typer.Typer(help="⚡ Product cache administration")


@cache_app.command("prime")
def prime() -> None:
    """Warm the cache with top products, category lists and new arrivals."""
    with product_service() as service:
        report = service.prime_cache()

    table = Table(title="Cache priming")
    table.add_column("Entry", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for name, value in report.as_dict().items():
        table.add_row(name.replace("_", " "), str(value))
    console.print(table)


@cache_app.command("clear")
def clear() -> None:
    """Evict every product-owned key."""
    with cache_service() as cache:
        evicted = cache.clear_all()
    console.print(f"[green]✅ Evicted {evicted} keys[/green]")


@cache_app.command("stats")
def stats() -> None:
    """Show key counts per family and the backend in use."""
    with product_service() as service:
        data = service.cache_stats()

    table = Table(title=f"Cache keys ({data['backend']})")
    table.add_column("Family", style="cyan")
    table.add_column("Keys", justify="right", style="green")
    for family, count in data["keys"].items():
        table.add_row(family, str(count))
    console.print(table)

    status = "[green]reachable[/green]" if data["reachable"] else "[red]unreachable[/red]"
    console.print(f"Backend: {status}, strategy: {data['invalidation_strategy']}")


@cache_app.command("evict")
def evict(
    pattern: str = typer.Argument(..., help="Glob pattern, e.g. 'products:search:*'"),
) -> None:
    """Evict every key matching a pattern inside the product namespace."""
    owned_prefixes = tuple(p.rstrip("*") for p in keys.OWNED_PATTERNS)
    if not pattern.startswith(owned_prefixes):
        console.print(
            f"[red]❌ Pattern must start with one of: {', '.join(owned_prefixes)}[/red]"
        )
        raise typer.Exit(code=1)

    with cache_service() as cache:
        evicted = cache.evict_pattern(pattern)
    console.print(f"[green]✅ Evicted {evicted} keys matching '{pattern}'[/green]")
