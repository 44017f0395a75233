"""Pull request to Jira issue synchronisation.

This package implements a GitHub Actions automation that keeps Jira issues
in step with the pull requests that reference them:
- Issue reference extraction from PR descriptions and comments
- Draft detection (native flag or title convention)
- Remote-link assignment from each issue back to the PR
- Workflow transitions driven by the PR lifecycle (draft, ready, merged)
- Event emission and Prometheus metrics for each run
"""
