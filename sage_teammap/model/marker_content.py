"""Marker content builders - glyph, tooltip and popup HTML for a TeamMember.

All member text is HTML-escaped before interpolation since roster fields are
free text entered through the admin screens.
"""

from html import escape

from sage_teammap.constants import MarkerConfig, PopupConfig
from sage_teammap.model.marker import MarkerGlyph, TooltipSpec
from sage_teammap.model.team_member import TeamMember


def build_glyph(member: TeamMember) -> MarkerGlyph:
    """Portrait glyph if the member has an image, otherwise initials."""
    if member.profile_image_url:
        return MarkerGlyph(image_url=member.profile_image_url, size_px=MarkerConfig.SIZE_PX)
    return MarkerGlyph(text=member.initials, size_px=MarkerConfig.SIZE_PX)


def build_tooltip(member: TeamMember) -> TooltipSpec:
    """Brief hover tooltip: name and role."""
    html = (
        '<div style="text-align: center; padding: 4px;">'
        f'<strong style="color: {PopupConfig.PRIMARY_COLOR};">{escape(member.name)}</strong><br/>'
        f'<span style="font-size: 0.9em; color: {PopupConfig.MUTED_COLOR};">{escape(member.role)}</span>'
        "</div>"
    )
    return TooltipSpec(html=html)


def build_popup_html(member: TeamMember) -> str:
    """Detailed click popup: portrait, name, role, school, location, email, bio."""
    muted = f"margin: 4px 0; font-size: 0.9em; color: {PopupConfig.MUTED_COLOR};"
    parts = [f'<div style="padding: 16px; text-align: center; max-width: {PopupConfig.MAX_WIDTH_PX}px;">']

    if member.profile_image_url:
        size = PopupConfig.IMAGE_PX
        parts.append(
            f'<img src="{escape(member.profile_image_url, quote=True)}" alt="{escape(member.name, quote=True)}" '
            f'style="width: {size}px; height: {size}px; border-radius: 50%; object-fit: cover; '
            f'margin-bottom: 10px; border: 2px solid {PopupConfig.PRIMARY_COLOR};"/>'
        )

    parts.append(
        f'<h3 style="margin: 8px 0; font-size: 1.1em; font-weight: bold; color: {PopupConfig.PRIMARY_COLOR};">'
        f"{escape(member.name)}</h3>"
    )
    parts.append(
        f'<p style="margin: 4px 0; color: {PopupConfig.SECONDARY_COLOR}; font-weight: 600;">{escape(member.role)}</p>'
    )
    if member.school:
        parts.append(f'<p style="{muted}"><strong>School:</strong> {escape(member.school)}</p>')
    parts.append(f'<p style="{muted}"><strong>Location:</strong> {escape(member.location)}</p>')
    if member.email:
        address = escape(member.email, quote=True)
        parts.append(
            '<p style="margin: 4px 0; font-size: 0.9em;"><strong>Email:</strong> '
            f'<a href="mailto:{address}" style="color: {PopupConfig.PRIMARY_COLOR}; text-decoration: underline;">'
            f"{escape(member.email)}</a></p>"
        )
    if member.bio:
        parts.append(f'<p style="{muted}">{escape(member.bio)}</p>')

    parts.append("</div>")
    return "".join(parts)
