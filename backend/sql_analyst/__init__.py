"""SQL Analyst backend package."""
