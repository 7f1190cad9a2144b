"""PR Impact Bot - downstream lineage impact for changed dbt models.

Runs as a GitHub Action step that:
  - Finds the changed model SQL and schema YAML files
  - Diffs their columns between the base and head revisions
  - Asks the lineage service which tables and columns depend on them
  - Posts the report to the PR, the step summary and a step output
"""
