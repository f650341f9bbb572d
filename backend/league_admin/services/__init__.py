"""
Services Layer

Business logic for the admin workflows:
- Accept domain inputs (IDs, sessions, admin context)
- Return ORM rows or plain dicts
- Do NOT depend on HTTP request/response objects
- Raise league_admin.errors types; the app maps them to responses
"""
