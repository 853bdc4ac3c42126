"""
Utility Scripts.

- setup_supabase.py: Print or verify the Supabase schema (tables, indexes,
  generated rating column and the rating rollup functions)

Run scripts with: python -m scripts.<script_name>
"""
