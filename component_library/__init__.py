"""
Component library catalog.

Browse, search, tag, preview, and copy your saved UI components. Rows,
images, and sign-in are handled by Supabase.
"""

__version__ = "0.1.0"
