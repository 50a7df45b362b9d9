"""
Use Cases

Organized by domain folder:
- sessions/: Server-side provider session storage, refresh and logout
"""
