"""
Gerencie - Source Package

A personal and business finance tracker: transactions, budgets, debts,
goals, a shopping list, vehicle maintenance and a chat agent that records
transactions from text, receipt photos or voice notes.

DESIGN PRINCIPLES:
1. Storage is swappable at runtime (local files or Supabase tables)
2. Remote failures fall back to local storage and never reach the views
3. Every mutation is announced and logged
4. The LLM proposes, the flow records; totals are always computed locally
"""

__version__ = "1.0.0"
__author__ = "Gerencie Team"
