"""
Engagement discovery: finds reaction-count affordances on a loaded page
and reads the post and comments around them.
"""
import logging
import re
from typing import List, Optional
from bs4 import BeautifulSoup, Tag
from playwright.async_api import Page as PlaywrightPage
from config import Settings, settings as default_settings
from engagement_insights.extractors.base import first_text, parse_html, text_of
from engagement_insights.models import (
    CommentRecord,
    EngagementSource,
    NOT_SPECIFIED,
    PostRecord,
    TargetKind,
    UNKNOWN_AUTHOR,
)
from engagement_insights.utils.pacing import Pacer
from engagement_insights.utils.text import clean_name, collapse_whitespace, parse_count
from engagement_insights.utils.urls import (
    LINKEDIN_ORIGIN,
    absolutize,
    canonical_profile_url,
    is_profile_url,
)

logger = logging.getLogger(__name__)


AFFORDANCE_SELECTORS = [
    '.feed-shared-social-counts a[href*="reactions"]',
    'button[data-control-name*="likes"]',
    '.social-details-social-counts__count',
    '.social-details-social-counts__reactions-count',
    'a[href*="reactions"] span',
    '.feed-shared-social-action__count',
]

POST_CONTAINER_CLASSES = ('feed-shared-update-v2', 'scaffold-layout__list-item')

AUTHOR_SELECTORS = [
    '.feed-shared-actor__name',
    '.update-components-actor__name',
    '[class*="actor__name"]',
]

POST_CONTENT_SELECTORS = [
    '.feed-shared-text',
    '.update-components-text',
    '.feed-shared-update-v2__description',
    '.feed-shared-text__text-view',
    '[data-test-id="post-text"]',
    '.break-words',
]

POST_URL_SELECTORS = [
    'a[href*="/posts/"]',
    'a[href*="/feed/update/"]',
    'a[href*="/activity-"]',
]

COMMENT_COUNT_SELECTORS = [
    '.social-details-social-counts__comments',
    'button[aria-label*="comment"]',
    'li[class*="comments"]',
]

COMMENT_ITEM_SELECTOR = 'article.comments-comment-item, article.comments-comment-entity, .comments-comment-item, .comment'

COMMENT_NAME_SELECTORS = [
    '.comments-post-meta__name-text',
    '.comments-comment-meta__description-title',
    '.comment__actor-name',
    '.comments-post-meta__actor-name',
]

COMMENT_HEADLINE_SELECTORS = [
    '.comments-post-meta__headline',
    '.comments-comment-meta__description-subtitle',
]

COMMENT_TEXT_SELECTORS = [
    '.comments-comment-item__main-content',
    '.comments-comment-item-content-body',
    '.comment__text',
    '.comments-post-meta__text',
    '.feed-shared-comment__text',
    '[data-test-id="comment-text"]',
]

COMMENT_LIKES_SELECTORS = [
    '.comments-comment-social-bar__reactions-count',
    '.comment__social-action-count',
]

SCROLL_PAGE_JS = "() => window.scrollBy(0, window.innerHeight * 0.8)"

TAG_AFFORDANCE_JS = """
({ selector, nth, index }) => {
    const el = document.querySelectorAll(selector)[nth];
    if (!el) return false;
    el.setAttribute('data-like-index', String(index));
    return true;
}
"""


def _is_interactive(elem: Tag) -> bool:
    return elem.name in ('a', 'button') or elem.find_parent(['a', 'button']) is not None


def _is_post_container(tag: Tag) -> bool:
    if tag.name == 'article':
        return True
    classes = tag.get('class') or []
    return any(cls in classes for cls in POST_CONTAINER_CLASSES)


def find_post_container(elem: Tag) -> Optional[Tag]:
    """Closest enclosing post container of an element."""
    return elem.find_parent(_is_post_container)


def _overlaps(elem: Tag, accepted: List[Tag]) -> bool:
    """True when ``elem`` is, contains, or sits inside an accepted candidate."""
    for other in accepted:
        if other is elem:
            return True
        if any(parent is other for parent in elem.parents):
            return True
        if any(parent is elem for parent in other.parents):
            return True
    return False


def read_author(container: Optional[Tag]):
    """``(name, profile_url)`` of the post author, degrading to ``Unknown``."""
    if container is None:
        return UNKNOWN_AUTHOR, None
    author_elem = None
    for selector in AUTHOR_SELECTORS:
        author_elem = container.select_one(selector)
        if author_elem is not None and text_of(author_elem):
            break
    if author_elem is None:
        return UNKNOWN_AUTHOR, None

    author = clean_name(text_of(author_elem))
    if author == NOT_SPECIFIED:
        author = UNKNOWN_AUTHOR

    link = author_elem if author_elem.name == 'a' else author_elem.find_parent('a')
    if link is None:
        link = author_elem.find('a', href=True)
    href = link.get('href') if link is not None else None
    if not href:
        return author, None
    if is_profile_url(href):
        return author, canonical_profile_url(href)
    return author, absolutize(href.split('?')[0])


def scan_affordances(soup: BeautifulSoup) -> List[EngagementSource]:
    """
    Reaction-count affordances in DOM discovery order.

    A candidate needs a positive integer in its text and must be clickable
    itself or sit inside a link or button.
    """
    accepted: List[Tag] = []
    sources: List[EngagementSource] = []

    for selector in AFFORDANCE_SELECTORS:
        for nth, elem in enumerate(soup.select(selector)):
            if _overlaps(elem, accepted):
                continue
            text = text_of(elem)
            likes_count = parse_count(text)
            if likes_count <= 0 or not _is_interactive(elem):
                continue

            author, author_url = read_author(find_post_container(elem))
            accepted.append(elem)
            sources.append(EngagementSource(
                index=len(sources),
                selector=selector,
                nth=nth,
                likes_count=likes_count,
                author=author,
                author_profile_url=author_url,
                text=text
            ))
    return sources


def locate(soup: BeautifulSoup, source: EngagementSource) -> Optional[Tag]:
    """Re-find a source's element in a fresh snapshot of the same navigation."""
    tagged = soup.select_one(f'[data-like-index="{source.index}"]')
    if tagged is not None:
        return tagged
    matches = soup.select(source.selector) if source.selector else []
    return matches[source.nth] if source.nth < len(matches) else None


def _post_url(container: Tag) -> Optional[str]:
    urn = container.get('data-urn') or container.get('data-id')
    if urn and urn.startswith('urn:li:activity:'):
        return f"{LINKEDIN_ORIGIN}/feed/update/{urn}/"
    for selector in POST_URL_SELECTORS:
        link = container.select_one(selector)
        if link is not None and link.get('href') and 'reactions' not in link['href']:
            return absolutize(link['href'].split('?')[0])
    return None


def _comments_count(container: Tag) -> int:
    for selector in COMMENT_COUNT_SELECTORS:
        for elem in container.select(selector):
            label = elem.get('aria-label', '') or text_of(elem)
            if 'comment' in label.lower():
                count = parse_count(label)
                if count:
                    return count
    match = re.search(r'(\d[\d,]*)\s*comments?', container.get_text(" ", strip=True), re.I)
    return int(match.group(1).replace(',', '')) if match else 0


def extract_post(
    soup: BeautifulSoup,
    source: EngagementSource,
    page_url: Optional[str] = None,
    kind: TargetKind = TargetKind.PROFILE
) -> PostRecord:
    """Post record for the post that owns ``source``."""
    elem = locate(soup, source)
    container = find_post_container(elem) if elem is not None else None

    content = ''
    post_url = page_url if kind == TargetKind.POST else None
    comments_count = 0
    if container is not None:
        content = first_text(container, POST_CONTENT_SELECTORS)
        post_url = post_url or _post_url(container)
        comments_count = _comments_count(container)

    return PostRecord(
        author=source.author,
        author_profile_url=source.author_profile_url,
        content=content or source.text or source.content_summary,
        post_url=post_url,
        likes_count=source.likes_count,
        comments_count=comments_count
    )


def _comment_record(item: Tag, post_author: str) -> Optional[CommentRecord]:
    comment_text = first_text(item, COMMENT_TEXT_SELECTORS)
    if not comment_text:
        return None

    link = item.select_one('a[href*="/in/"]')
    profile_url = None
    if link is not None and is_profile_url(link.get('href')):
        profile_url = canonical_profile_url(link['href'])

    name = clean_name(first_text(item, COMMENT_NAME_SELECTORS))
    if name == NOT_SPECIFIED and link is not None:
        name = clean_name(text_of(link))

    headline = collapse_whitespace(first_text(item, COMMENT_HEADLINE_SELECTORS)) or NOT_SPECIFIED

    time_elem = item.select_one('time')
    commented_at = None
    if time_elem is not None:
        commented_at = time_elem.get('datetime') or text_of(time_elem) or None

    return CommentRecord(
        name=name,
        profile_url=profile_url,
        headline=headline,
        comment_text=comment_text,
        commented_at=commented_at,
        likes_count=parse_count(first_text(item, COMMENT_LIKES_SELECTORS)),
        post_author=post_author
    )


def extract_comments(
    soup: BeautifulSoup,
    source: EngagementSource,
    limit: int = 50
) -> List[CommentRecord]:
    """Visible comments under the post that owns ``source``."""
    elem = locate(soup, source)
    container = find_post_container(elem) if elem is not None else None
    root = container if container is not None else soup

    comments: List[CommentRecord] = []
    seen: List[Tag] = []
    for item in root.select(COMMENT_ITEM_SELECTOR):
        if any(parent is seen_item for seen_item in seen for parent in item.parents):
            continue
        record = _comment_record(item, source.author)
        if record is None:
            continue
        seen.append(item)
        comments.append(record)
        if len(comments) >= limit:
            break
    return comments


class DiscoveryService:
    """Scans a loaded target page for engagement affordances."""

    def __init__(self, settings: Optional[Settings] = None, pacer: Optional[Pacer] = None):
        self.settings = settings or default_settings
        self.pacer = pacer or Pacer()

    async def staged_scroll(self, page: PlaywrightPage) -> None:
        """Scroll in viewport fractions so the page renders its lazy posts."""
        steps = self.settings.discovery_scroll_steps
        for i in range(steps):
            logger.debug(f"Scroll {i + 1}/{steps}")
            await page.evaluate(SCROLL_PAGE_JS)
            await self.pacer.sleep(self.settings.scroll_settle_delay)

    async def snapshot(self, page: PlaywrightPage) -> BeautifulSoup:
        return parse_html(await page.content())

    async def discover(self, page: PlaywrightPage) -> List[EngagementSource]:
        """Ordered reaction-count affordances, each tagged in the live DOM."""
        await self.staged_scroll(page)
        sources = scan_affordances(await self.snapshot(page))

        for source in sources:
            await page.evaluate(
                TAG_AFFORDANCE_JS,
                {"selector": source.selector, "nth": source.nth, "index": source.index}
            )

        logger.info(f"Found {len(sources)} post(s) with reactions")
        for source in sources:
            logger.debug(f"  [{source.index}] {source.author}: {source.likes_count} reactions")
        return sources

    async def read_post(
        self,
        page: PlaywrightPage,
        source: EngagementSource,
        kind: TargetKind = TargetKind.PROFILE,
        with_comments: bool = True
    ):
        """``(PostRecord, [CommentRecord])`` for the post that owns ``source``."""
        soup = await self.snapshot(page)
        post = extract_post(soup, source, page_url=page.url, kind=kind)
        comments = []
        if with_comments:
            comments = extract_comments(soup, source, limit=self.settings.max_comments_per_post)
        if comments and not post.comments_count:
            post.comments_count = len(comments)
        logger.info(f"Post by {post.author}: {post.likes_count} reactions, {len(comments)} comment(s) read")
        return post, comments
