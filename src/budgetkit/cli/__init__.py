"""Command line interface for budgetkit."""
