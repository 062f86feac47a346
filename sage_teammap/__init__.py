"""SAGE Team Map - Where the SAGE team members are around the world.

An interactive map of the team roster featuring:
- Read-only team directory (hosted REST table or JSON export)
- Two interchangeable map engines (raster tiles, vector basemap)
- Marker synchronization with portrait or initials glyphs
- State machine-based selection with fly-to camera moves

Modules:
    core: Directory, map surfaces, surface lifecycle, marker synchronization
    model: Data structures (TeamMember, MemberMarker, messages)
    ui: Streamlit interface components (selection, mounted view, map panel)

Example:
    from sage_teammap.core import DirectorySettings, create_directory
    from sage_teammap.ui import TeamMapView
"""
