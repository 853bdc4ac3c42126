#!/usr/bin/env python3
"""Supabase database setup script for bizdirectory.

This script outputs the SQL needed to create all required tables in Supabase.
Copy the SQL output and run it in the Supabase SQL Editor.

Usage:
    # Print all SQL to console
    python scripts/setup_supabase.py

    # Print SQL and save to file
    python scripts/setup_supabase.py --output setup.sql

    # Verify tables exist
    python scripts/setup_supabase.py --verify

Tables Created:
    - businesses: Directory listings with rating totals
    - businessLocations: Physical locations of a business
    - products: Products and services of a business
    - businessReviews: Customer reviews
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from bizdirectory.store.base import Collections
from bizdirectory.store.schema import DROP_SQL, SCHEMA_SQL


def get_sql(sql_type: str = "setup") -> str:
    """Return the SQL for the requested type."""
    if sql_type == "drop":
        return DROP_SQL
    return SCHEMA_SQL


async def verify_tables() -> dict:
    """Verify that all required tables exist in Supabase.

    Returns:
        Dictionary with verification results.
    """
    try:
        from supabase import acreate_client

        from bizdirectory.config import get_settings

        settings = get_settings()
        supabase = await acreate_client(
            settings.supabase_url,
            settings.supabase_key.get_secret_value(),
        )
    except Exception as e:
        return {"success": False, "error": str(e)}

    results = {
        "success": True,
        "tables": {},
        "missing": [],
        "errors": [],
    }

    for table in Collections.ALL:
        try:
            response = await supabase.table(table).select("id").limit(1).execute()
            results["tables"][table] = {
                "exists": True,
                "row_count": len(response.data) if response.data else 0,
            }
        except Exception as e:
            error_str = str(e)
            results["success"] = False
            if "does not exist" in error_str.lower() or "relation" in error_str.lower():
                results["tables"][table] = {"exists": False}
                results["missing"].append(table)
            else:
                results["tables"][table] = {"exists": "unknown", "error": error_str[:100]}
                results["errors"].append(f"{table}: {error_str[:100]}")

    return results


def print_verification_results(results: dict) -> None:
    """Print verification results in a formatted way."""
    print("\n" + "=" * 70)
    print("Supabase Table Verification Results")
    print("=" * 70)

    if "error" in results:
        print(f"\nError: {results['error']}")
        return

    for table, info in results["tables"].items():
        status = "OK" if info.get("exists") is True else "MISSING"
        print(f"  {table:<20} {status}")

    if results["missing"]:
        print("\nMissing tables: " + ", ".join(results["missing"]))
        print("Run this script without --verify and execute the SQL in Supabase.")
    for error in results["errors"]:
        print(f"  Error: {error}")


def main():
    """Main entry point for the setup script."""
    parser = argparse.ArgumentParser(
        description="Generate Supabase setup SQL for bizdirectory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Print setup SQL to console
    python scripts/setup_supabase.py

    # Save setup SQL to file
    python scripts/setup_supabase.py --output setup.sql

    # Verify tables exist in Supabase
    python scripts/setup_supabase.py --verify

    # Print drop SQL (use with caution!)
    python scripts/setup_supabase.py --type drop
        """,
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        help="Save SQL to file instead of printing",
    )
    parser.add_argument(
        "--type", "-t",
        type=str,
        choices=["setup", "drop"],
        default="setup",
        help="Type of SQL to generate (default: setup)",
    )
    parser.add_argument(
        "--verify", "-v",
        action="store_true",
        help="Verify that tables exist in Supabase",
    )

    args = parser.parse_args()

    if args.verify:
        results = asyncio.run(verify_tables())
        print_verification_results(results)
        sys.exit(0 if results.get("success") else 1)

    sql = get_sql(args.type)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(sql)
        print(f"SQL saved to: {args.output}")
    else:
        print(sql)


if __name__ == "__main__":
    main()
