"""Azure DevOps user/project membership report.

Pulls user entitlements (paginated, rate limited) and the project -> team ->
member hierarchy from Azure DevOps, joins them, and writes a flat CSV report
of users, their projects and license level.
"""
