"""
Audit comments written to the history field of split work items.
"""

from __future__ import annotations

import html
from typing import Callable, Iterable, Union

WebUrl = Callable[[int], str]


def html_link(href: str, text: Union[int, str]) -> str:
    return f'<a href="{html.escape(href, quote=True)}" target="_blank">{text}</a>'


def work_item_link(work_item_id: int, web_url: WebUrl) -> str:
    return html_link(web_url(work_item_id), work_item_id)


def split_from_comment(
    source_id: int, source_title: str, web_url: WebUrl, reference_url: str
) -> str:
    """History entry for the newly created continuation item."""
    return (
        f"This work item was {html_link(reference_url, 'split')} from work item "
        f"{work_item_link(source_id, web_url)}: {html.escape(source_title or '')}"
    )


def split_to_comment(
    target_id: int, moved_ids: Iterable[int], web_url: WebUrl, reference_url: str
) -> str:
    """History entry for the source item, listing the children it gave up."""
    child_links = ", ".join(work_item_link(i, web_url) for i in moved_ids)
    return (
        f"The following items were {html_link(reference_url, 'split')} to work item "
        f"{work_item_link(target_id, web_url)}:<br>&nbsp;&nbsp;{child_links}"
    )
