"""Run the Progress Report pipeline and write output to JSON + Excel.

Usage:
    python run_pipeline.py --ingest report.json               # validate, resolve grade, store
    python run_pipeline.py --report r-123 --lat 1.30 --lng 103.8
    python run_pipeline.py --report r-123 --address "Orchard Rd, Singapore"
    python run_pipeline.py --report latest --current-activity Swimming
    python run_pipeline.py --migrate-grades                   # re-resolve every stored grade
    python run_pipeline.py --regenerate-all                   # recompose every stored summary
"""

import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from dotenv import load_dotenv
load_dotenv()

import pandas as pd
from openpyxl.styles import Font, PatternFill
from pydantic import BaseModel

from progress_agents.agents.report_enricher import enrich_stored_report
from progress_agents.agents.report_ingestor import ingest_into_store, run_grade_migration
from progress_agents.agents.summary_composer import run_summary_regeneration
from progress_agents.config.constants import DEFAULT_STORE_DIR
from progress_agents.exceptions import MalformedInputError, OutputWriteError, ProgressCrewException
from progress_agents.schemas.enrichment_output import BatchRunOutput, EnrichmentOutput
from progress_agents.schemas.recommendation_output import GeoPoint
from progress_agents.tools.report_store import JsonReportStore
from progress_agents.tools.token_tracker import tracker as token_tracker


# ---------------------------------------------------------------------------
# Shared Excel formatting
# ---------------------------------------------------------------------------

_HEADER_FONT = Font(bold=True)
_HEADER_FILL = PatternFill(start_color="B8CCE4", end_color="B8CCE4", fill_type="solid")

_PRIORITY_FILLS = {
    "High": PatternFill(start_color="FF9999", end_color="FF9999", fill_type="solid"),
    "Medium": PatternFill(start_color="FFFF99", end_color="FFFF99", fill_type="solid"),
    "Low": PatternFill(start_color="90EE90", end_color="90EE90", fill_type="solid"),
}
_STATUS_FILLS = {
    "updated": PatternFill(start_color="90EE90", end_color="90EE90", fill_type="solid"),
    "unchanged": PatternFill(start_color="D9D9D9", end_color="D9D9D9", fill_type="solid"),
    "failed": PatternFill(start_color="FF0000", end_color="FF0000", fill_type="solid"),
}
_WHITE_FONT = Font(color="FFFFFF")


def _style_sheet(ws, widths: dict[str, int]) -> None:
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
    for col, width in widths.items():
        ws.column_dimensions[col].width = width


def _fill_column(ws, header: str, fills: dict[str, PatternFill]) -> None:
    """Color cells in the column titled `header` by their value."""
    col_idx = None
    for cell in ws[1]:
        if cell.value == header:
            col_idx = cell.column
            break
    if col_idx is None:
        return
    for row in ws.iter_rows(min_row=2, min_col=col_idx, max_col=col_idx):
        for cell in row:
            fill = fills.get(str(cell.value))
            if fill is not None:
                cell.fill = fill
                if str(cell.value) == "failed":
                    cell.font = _WHITE_FONT


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

def _save_snapshot(output: BaseModel, filename: str, output_dir: Path) -> Path:
    """Save a pipeline output as a JSON snapshot."""
    filepath = output_dir / filename
    filepath.write_text(output.model_dump_json(indent=2, by_alias=True), encoding="utf-8")
    return filepath


def _guarded(write, *args) -> str:
    """Run an output writer, reporting filesystem failures as OutputWriteError."""
    try:
        return str(write(*args))
    except OSError as e:
        raise OutputWriteError(f"Cannot write output: {e}") from e


# ---------------------------------------------------------------------------
# Excel Writers
# ---------------------------------------------------------------------------

def _write_enrichment_excel(output: EnrichmentOutput, output_dir: Path) -> str:
    """Write recommendations, venues, parent actions and evaluations to Excel."""
    filepath = str(output_dir / f"recommendations_{output.report_id}.xlsx")

    rec_rows = []
    venue_rows = []
    for rec in output.recommendations:
        rec_rows.append({
            "Priority": rec.priority.value,
            "Activity": rec.name,
            "Category": rec.category,
            "Type": rec.recommendation_type.value,
            "Target Attributes": ", ".join(rec.target_attributes),
            "Why Recommended": rec.why_recommended,
            "Frequency": rec.frequency,
            "Estimated Cost": rec.estimated_cost,
            "Venues": len(rec.venues),
        })
        for v in rec.venues:
            venue_rows.append({
                "Activity": rec.name,
                "Venue": v.name,
                "Address": v.address,
                "Distance": v.distance_label,
                "Rating": v.rating,
                "Ratings": v.total_ratings,
            })

    action_rows = []
    for action in output.parent_actions:
        for activity in action.activities:
            action_rows.append({
                "Priority": action.priority.value,
                "Action": action.title,
                "Category": action.category.value,
                "Target Area": action.target_area,
                "Activity": activity.activity,
                "Tips": " | ".join(activity.tips),
            })

    eval_rows = [
        {
            "Current Activity": ev.activity_name,
            "Verdict": ev.verdict.value,
            "Alignment": ev.alignment,
            "Reasoning": ev.reasoning,
            "Alternatives": ", ".join(ev.alternatives),
        }
        for ev in output.activity_evaluations
    ]

    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        pd.DataFrame(rec_rows, columns=[
            "Priority", "Activity", "Category", "Type", "Target Attributes",
            "Why Recommended", "Frequency", "Estimated Cost", "Venues",
        ]).to_excel(writer, sheet_name="Recommendations", index=False)
        ws = writer.sheets["Recommendations"]
        _style_sheet(ws, {"A": 10, "B": 28, "C": 14, "D": 14, "E": 30, "F": 60})
        _fill_column(ws, "Priority", _PRIORITY_FILLS)

        pd.DataFrame(venue_rows, columns=[
            "Activity", "Venue", "Address", "Distance", "Rating", "Ratings",
        ]).to_excel(writer, sheet_name="Venues", index=False)
        _style_sheet(writer.sheets["Venues"], {"A": 28, "B": 32, "C": 45, "D": 10})

        pd.DataFrame(action_rows, columns=[
            "Priority", "Action", "Category", "Target Area", "Activity", "Tips",
        ]).to_excel(writer, sheet_name="Parent Actions", index=False)
        ws = writer.sheets["Parent Actions"]
        _style_sheet(ws, {"A": 10, "B": 45, "C": 20, "D": 30, "E": 30, "F": 80})
        _fill_column(ws, "Priority", _PRIORITY_FILLS)

        if eval_rows:
            pd.DataFrame(eval_rows).to_excel(writer, sheet_name="Current Activities", index=False)
            _style_sheet(writer.sheets["Current Activities"], {"A": 25, "B": 12, "D": 70, "E": 40})

        if output.errors:
            pd.DataFrame(output.errors).to_excel(writer, sheet_name="Errors", index=False)
            _style_sheet(writer.sheets["Errors"], {"A": 25, "B": 22, "C": 70})

    return filepath


def _write_batch_excel(output: BatchRunOutput, output_dir: Path) -> str:
    """Write per-report outcomes of a batch run to Excel."""
    filepath = str(output_dir / f"{output.operation}_{date.today().isoformat()}.xlsx")
    rows = [
        {
            "Report": item.report_id,
            "Status": item.status.value,
            "Old Value": item.old_value,
            "New Value": item.new_value,
            "Error Type": item.error_type,
            "Message": item.message,
        }
        for item in output.items
    ]
    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        pd.DataFrame([
            {"Metric": "Operation", "Value": output.operation},
            {"Metric": "Total", "Value": output.total},
            {"Metric": "Updated", "Value": output.updated},
            {"Metric": "Unchanged", "Value": output.unchanged},
            {"Metric": "Failed", "Value": output.failed},
            {"Metric": "Run Date", "Value": str(date.today())},
        ]).to_excel(writer, sheet_name="Summary", index=False)
        _style_sheet(writer.sheets["Summary"], {"A": 20, "B": 25})

        pd.DataFrame(rows, columns=[
            "Report", "Status", "Old Value", "New Value", "Error Type", "Message",
        ]).to_excel(writer, sheet_name="Items", index=False)
        ws = writer.sheets["Items"]
        _style_sheet(ws, {"A": 25, "B": 12, "C": 14, "D": 14, "E": 24, "F": 70})
        _fill_column(ws, "Status", _STATUS_FILLS)
    return filepath


def _write_token_usage_excel(output_dir: Path) -> str | None:
    """Write token usage report to Excel if any LLM calls were tracked."""
    if not token_tracker.has_records:
        return None

    filepath = str(output_dir / "token_usage.xlsx")
    summary = token_tracker.get_summary()

    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        pd.DataFrame([
            {"Metric": "Total Input Tokens", "Value": f"{summary['total_input_tokens']:,}"},
            {"Metric": "Total Output Tokens", "Value": f"{summary['total_output_tokens']:,}"},
            {"Metric": "Total Tokens", "Value": f"{summary['total_tokens']:,}"},
            {"Metric": "Estimated Cost ($)", "Value": f"${summary['estimated_cost_usd']:.4f}"},
            {"Metric": "Number of LLM Calls", "Value": str(summary["num_calls"])},
            {"Metric": "Pipeline Run Date", "Value": str(date.today())},
        ]).to_excel(writer, sheet_name="Summary", index=False)
        _style_sheet(writer.sheets["Summary"], {"A": 25, "B": 25})

        pd.DataFrame([
            {
                "Function": f["function"],
                "Model": f["model"],
                "Input Tokens": f["input_tokens"],
                "Output Tokens": f["output_tokens"],
                "Total Tokens": f["total_tokens"],
                "Cost ($)": f["cost_usd"],
                "Calls": f["calls"],
            }
            for f in token_tracker.get_by_function()
        ]).to_excel(writer, sheet_name="By Function", index=False)
        _style_sheet(writer.sheets["By Function"], {"A": 34, "B": 28})
    return filepath


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Progress Report Crew: report enrichment pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  python run_pipeline.py --ingest report.json                 store a new report
  python run_pipeline.py --report r-1 --lat 1.30 --lng 103.8  recommendations + venues
  python run_pipeline.py --report latest                      newest stored report, no venues
  python run_pipeline.py --migrate-grades                     re-resolve stored grades
  python run_pipeline.py --regenerate-all                     recompose stored summaries
""",
    )
    parser.add_argument(
        "--store", default=os.getenv("PROGRESS_STORE_DIR", DEFAULT_STORE_DIR),
        help=f"Report store directory (default: $PROGRESS_STORE_DIR or {DEFAULT_STORE_DIR})",
    )
    parser.add_argument(
        "--output", default="output",
        help="Output directory (default: output)",
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--ingest", metavar="FILE", help="Ingest a report JSON document into the store")
    mode.add_argument("--report", metavar="ID", help="Enrich a stored report ('latest' for the newest)")
    mode.add_argument("--migrate-grades", action="store_true", help="Re-resolve the grade of every stored report")
    mode.add_argument("--regenerate-all", action="store_true", help="Recompose the summary of every stored report")

    parser.add_argument("--lat", type=float, help="Venue search latitude")
    parser.add_argument("--lng", type=float, help="Venue search longitude")
    parser.add_argument("--address", help="Venue search address (geocoded)")
    parser.add_argument(
        "--current-activity", dest="current_activities", action="append", default=[],
        metavar="NAME", help="Activity the child already does (repeatable)",
    )
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    args = parser.parse_args(argv)
    if (args.lat is None) != (args.lng is None):
        parser.error("--lat and --lng must be given together")
    if args.lat is not None and args.address:
        parser.error("use either --lat/--lng or --address, not both")
    return args


def _anchor_from_args(args: argparse.Namespace):
    if args.lat is not None:
        return GeoPoint(latitude=args.lat, longitude=args.lng)
    return args.address or None


def main(args: argparse.Namespace) -> int:
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = JsonReportStore(args.store)
    out_path = Path(args.output)
    out_path.mkdir(parents=True, exist_ok=True)

    print(f"Report store: {store.root}")

    try:
        if args.ingest:
            with open(args.ingest, encoding="utf-8") as f:
                try:
                    document = json.load(f)
                except json.JSONDecodeError as e:
                    raise MalformedInputError(f"{args.ingest} is not valid JSON: {e}") from e
            print(f"\n[Agent 01] Ingesting {args.ingest} ...")
            ingested = ingest_into_store(store, document)
            report = ingested.report
            print(f"[Agent 01] Done: report {report.id}, grade {report.grade or 'unresolved'}, "
                  f"type {report.report_type.value}, {len(ingested.warnings)} warning(s)")
            snap = _guarded(_save_snapshot, ingested, f"ingest_{report.id}.json", out_path)
            print(f"[Agent 01] Saved: {snap}")

        elif args.migrate_grades:
            print("\n[Agent 01] Migrating stored grades ...")
            batch = run_grade_migration(store)
            print(f"[Agent 01] Done: {batch.updated} updated, {batch.unchanged} unchanged, "
                  f"{batch.failed} failed")
            print(f"[Agent 01] Saved: {_guarded(_write_batch_excel, batch, out_path)}")

        elif args.regenerate_all:
            print("\n[Agent 02] Regenerating stored summaries ...")
            batch = run_summary_regeneration(store)
            print(f"[Agent 02] Done: {batch.updated} updated, {batch.failed} failed")
            for error_type, count in batch.error_counts.items():
                print(f"[Agent 02]   {error_type}: {count}")
            print(f"[Agent 02] Saved: {_guarded(_write_batch_excel, batch, out_path)}")

        else:
            report_id = args.report
            if report_id == "latest":
                report_id = store.most_recent()
                if report_id is None:
                    print("No reports in store.")
                    return 1
            print(f"\n[Agent 06] Enriching report {report_id} ...")
            enriched = enrich_stored_report(
                store, report_id,
                anchor=_anchor_from_args(args),
                current_activities=args.current_activities,
            )
            print(f"[Agent 06] Done: {len(enriched.recommendations)} recommendation(s), "
                  f"{len(enriched.parent_actions)} parent action(s), "
                  f"summary {enriched.summary_source}")
            for rec in enriched.recommendations:
                print(f"  [{rec.priority.value:<6}] {rec.name} ({len(rec.venues)} venue(s))")
            for ev in enriched.activity_evaluations:
                print(f"  current: {ev.activity_name} -> {ev.verdict.value} ({ev.alignment})")
            if enriched.errors:
                print(f"[Agent 06] {len(enriched.errors)} contained error(s)")

            snap = out_path / f"recommendations_{enriched.report_id}.json"
            _guarded(snap.write_text, json.dumps(enriched.to_response(), indent=2), "utf-8")
            print(f"[Agent 06] Saved: {snap}")
            print(f"[Agent 06] Saved: {_guarded(_write_enrichment_excel, enriched, out_path)}")

    except ProgressCrewException as e:
        print(f"\nError [{e.error_code}]: {e}")
        return 1

    # ===== Token Usage Report =====
    token_file = _write_token_usage_excel(out_path)
    if token_file:
        summary = token_tracker.get_summary()
        print(f"\n[Tokens] {summary['num_calls']} LLM calls, "
              f"{summary['total_tokens']:,} tokens, "
              f"${summary['estimated_cost_usd']:.4f}")
        print(f"[Tokens] Saved: {token_file}")

    print(f"\nOutput directory: {out_path}/")
    return 0


if __name__ == "__main__":
    sys.exit(main(parse_args()))
