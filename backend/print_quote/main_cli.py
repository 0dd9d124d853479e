# main_cli.py

import logging
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from .config import settings, setup_logging
from .core import geometry
from .core.common_types import MeshAnalysis, PrintConfiguration
from .core.exceptions import PrintQuoteError
from .core.utils import format_hours
from .processes.print_3d.processor import Print3DProcessor

logger = logging.getLogger(__name__)

# --- Typer App Initialization ---
app = typer.Typer(help="STL analysis and instant 3D printing quote CLI tool")
console = Console()

@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level (e.g., DEBUG)."),
):
    setup_logging(log_level.upper() if log_level else None)

def get_processor_cli() -> Print3DProcessor:
    """Builds the processor from the loaded settings, exiting on configuration errors."""
    try:
        return Print3DProcessor(rates=settings.pricing_rates(), materials_file=settings.materials_file)
    except PrintQuoteError as e:
        console.print(f"[bold red]Error initializing processor: {e}[/]")
        raise typer.Exit(code=1)

def print_analysis(analysis: MeshAnalysis) -> None:
    if analysis.has_errors:
        console.print(Panel("[bold red]FAILED[/]", title="Analysis Status", expand=False))
        for error in analysis.errors:
            console.print(f"- [red]{error}[/]")
        return

    status = "[bold green]WATERTIGHT[/]" if analysis.is_watertight else "[bold yellow]NOT WATERTIGHT[/]"
    console.print(Panel(status, title="Analysis Status", expand=False))
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column()
    table.add_column(justify="right")
    table.add_row("Volume:", f"{analysis.volume_cm3:.2f} cm³")
    table.add_row("Surface Area:", f"{analysis.surface_area_cm2:.2f} cm²")
    bbox = analysis.bounding_box
    table.add_row("Bounding Box:", f"{bbox.x:.2f} x {bbox.y:.2f} x {bbox.z:.2f} mm")
    table.add_row("Triangles:", str(analysis.triangle_count))
    console.print(table)

def save_json(output_json: Path, content: str) -> None:
    try:
        output_json.parent.mkdir(parents=True, exist_ok=True)
        output_json.write_text(content)
        console.print(f"\n[green]Result saved to: {output_json}[/]")
    except OSError as e:
        console.print(f"\n[bold red]Error saving JSON output to {output_json}: {e}[/]")
        raise typer.Exit(code=1)

# --- CLI Commands ---

@app.command()
def list_materials():
    """Lists the active materials in the catalog."""
    processor = get_processor_cli()
    materials = processor.list_available_materials()

    if not materials:
        console.print("[yellow]No materials found.[/]")
        return

    table = Table(title="Available Materials", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=16)
    table.add_column("Name")
    table.add_column("Category", width=10)
    table.add_column("Price", justify="right")
    table.add_column("Setup", justify="right")
    table.add_column("Minimum", justify="right")
    table.add_column("Lead Time", justify="right")
    table.add_column("Colors")

    for mat in materials:
        pricing = mat.pricing
        lead = f"{mat.lead_time_days} d" if mat.lead_time_days is not None else "N/A"
        table.add_row(
            mat.id,
            mat.name,
            mat.category.value,
            f"{pricing.base_price_per_cm3:.2f} {pricing.currency}/cm³",
            f"{pricing.setup_fee:.2f}",
            f"{pricing.min_price:.2f}",
            lead,
            ", ".join(mat.properties.color_options),
        )

    console.print(table)

@app.command()
def analyze(
    file_path: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, readable=True, help="Path to the model file (.stl, .obj, .3mf, .step, .stp)"),
    output_json: Optional[Path] = typer.Option(None, "--output", "-o", help="Save the analysis as a JSON file."),
):
    """Measures volume, surface area and bounding box of a model file."""
    console.print(f"Analyzing: [cyan]{file_path.name}[/]")
    try:
        analysis = geometry.analyze_upload(file_path.read_bytes(), file_path.name)
    except PrintQuoteError as e:
        console.print(f"[bold red]Analysis Failed: {e}[/]")
        raise typer.Exit(code=1)

    print_analysis(analysis)
    if output_json:
        save_json(output_json, analysis.model_dump_json(indent=2))
    if analysis.has_errors:
        raise typer.Exit(code=1)

@app.command()
def quote(
    file_path: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, readable=True, help="Path to the model file (.stl, .obj, .3mf, .step, .stp)"),
    material_id: str = typer.Argument(..., help="Material ID (use 'list-materials' command to see available IDs)"),
    quantity: int = typer.Option(1, "--quantity", "-q", help="Number of units (1-1000)."),
    color: str = typer.Option("White", "--color", "-c", help="Color offered by the material."),
    infill: float = typer.Option(20, "--infill", help="Infill percentage (10-100)."),
    layer_height: float = typer.Option(0.2, "--layer-height", help="Layer height in mm (0.05-0.5)."),
    supports: bool = typer.Option(False, "--supports", help="Print with support structures."),
    post_processing: Optional[List[str]] = typer.Option(None, "--post-processing", "-p", help="Finishing step, repeatable (e.g., -p sanding -p painting)."),
    output_json: Optional[Path] = typer.Option(None, "--output", "-o", help="Save the full quote as a JSON file."),
):
    """Analyzes a model file and generates an instant quote."""
    console.print(f"Processing: [cyan]{file_path.name}[/]")
    console.print(f"Material: [cyan]{material_id}[/]")

    try:
        configuration = PrintConfiguration(
            quantity=quantity,
            color=color,
            infill_percentage=infill,
            layer_height=layer_height,
            support_structures=supports,
            post_processing=post_processing or [],
        )
    except ValidationError as e:
        console.print("[bold red]Invalid print configuration:[/]")
        for err in e.errors():
            console.print(f"- {'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        raise typer.Exit(code=1)

    processor = get_processor_cli()
    try:
        analysis, result = processor.quote_file(file_path.read_bytes(), file_path.name, material_id, configuration)
    except PrintQuoteError as e:
        console.print(f"\n[bold red]Quote Generation Failed: {e}[/]")
        raise typer.Exit(code=1)

    print_analysis(analysis)

    # --- Print Summary ---
    pricing = result.pricing
    currency = pricing.currency
    console.print("\n[bold]Cost & Time Estimate:[/]")
    cost_table = Table(show_header=False, box=None, padding=(0, 1))
    cost_table.add_column()
    cost_table.add_column(justify="right")
    cost_table.add_row("Quantity:", str(configuration.quantity))
    cost_table.add_row("Material Cost:", f"{pricing.material_cost:.2f} {currency}")
    cost_table.add_row("Labor Cost:", f"{pricing.labor_cost:.2f} {currency}")
    cost_table.add_row("Setup Fee:", f"{pricing.setup_fee:.2f} {currency}")
    cost_table.add_row("Post-processing:", f"{pricing.post_processing_fee:.2f} {currency}")
    cost_table.add_row("Subtotal:", f"{pricing.subtotal:.2f} {currency}")
    cost_table.add_row("Discount:", f"-{pricing.discount:.2f} {currency}")
    cost_table.add_row("[bold green]Total:[/]", f"[bold green]{pricing.total:.2f} {currency}[/]")
    cost_table.add_row("Estimated Print Time:", format_hours(result.estimated_print_time_hours))
    cost_table.add_row("Estimated Delivery:", f"{result.estimated_delivery_days} days")
    console.print(cost_table)

    for warning in pricing.warnings:
        console.print(f"[yellow]Warning: {warning}[/]")

    # --- Save JSON Output ---
    if output_json:
        save_json(output_json, result.model_dump_json(indent=2))


# --- Main Execution ---
if __name__ == "__main__":
    app()
