"""
Terminal UI for Session Usage.

Host contract, theme, and the loader and usage view components.
"""
