"""
Core package for the PiggerTimeline dashboard.

Submodules provide feed loading, filtering, view-model building and the
Streamlit user interface that is orchestrated by the top-level `app.py`.
"""
