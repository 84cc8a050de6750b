"""Post commands implementation."""
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from ..data.sample_posts import SAMPLE_POSTS
from ..lib.console import echo_with_prefix, safe_echo
from ..lib.slug import generate_slug
from ..models.outcome import ErrorCategory, OperationResult
from ..models.post import Post, PostCategory, PostInput, PostUpdate
from ..services.post_repository import PostRepository
from .common import fail_with, run_operation

logger = logging.getLogger(__name__)

CATEGORY_HELP = f"Post category (suggested: {', '.join(PostCategory.suggestions())})"


def _read_content(content: Optional[str], content_file: Optional[Path]) -> Optional[str]:
    if content_file is not None:
        return content_file.read_text(encoding="utf-8")
    return content


def _display_post_summary(post: Post) -> None:
    safe_echo(f"  ID:        {post.id}")
    safe_echo(f"  Title:     {post.title}")
    safe_echo(f"  Category:  {post.category}")
    safe_echo(f"  Author:    {post.author}")
    safe_echo(f"  Date:      {post.date}")
    safe_echo(f"  Read time: {post.read_time}")
    safe_echo(f"  Path:      {post.path}")


def create(
    title: str = typer.Option(..., "--title", prompt=True, help="Post title"),
    content: Optional[str] = typer.Option(None, "--content", help="Post content (markdown)"),
    content_file: Optional[Path] = typer.Option(
        None, "--content-file", exists=True, dir_okay=False, help="Read content from file"
    ),
    excerpt: str = typer.Option("", "--excerpt", help="Short summary shown in listings"),
    category: str = typer.Option(PostCategory.DEVELOPMENT.value, "--category", help=CATEGORY_HELP),
    author: str = typer.Option("", "--author", help="Author name"),
    read_time: Optional[str] = typer.Option(
        None, "--read-time", help="Override the estimated read time, e.g. '5 min read'"
    ),
):
    """Create a new post."""
    body = _read_content(content, content_file)

    if not title.strip():
        safe_echo("[ERROR] Title must not be empty")
        raise typer.Exit(1)
    if not body or not body.strip():
        safe_echo("[ERROR] Content must not be empty (use --content or --content-file)")
        raise typer.Exit(1)

    echo_with_prefix("CREATE", f"Creating post: {title}")

    post_input = PostInput(
        title=title,
        content=body,
        excerpt=excerpt,
        category=category,
        author=author,
        read_time=read_time,
    )
    result = run_operation(lambda repository: repository.create(post_input))

    if not result.ok:
        fail_with(result.error)

    safe_echo("[SUCCESS] Post created")
    _display_post_summary(result.data)


def list_posts(
    format: str = typer.Option("table", "--format", help="Output format [table|json]"),
):
    """List all posts, newest first."""
    result = run_operation(lambda repository: repository.read_all())

    if not result.ok:
        fail_with(result.error)

    posts = result.data

    if format == "json":
        safe_echo(json.dumps([post.to_dict() for post in posts], indent=2, ensure_ascii=False))
        return

    if not posts:
        safe_echo("[INFO] No posts yet")
        return

    safe_echo(f"{'DATE':<12} {'ID':<40} {'CATEGORY':<16} {'READ TIME':<12} TITLE")
    safe_echo("-" * 100)
    for post in posts:
        safe_echo(f"{post.date:<12} {post.id:<40} {post.category:<16} {post.read_time:<12} {post.title}")
    safe_echo(f"\nTotal: {len(posts)} posts")


def show(
    post_id: str = typer.Argument(..., help="Post id (slug)"),
    format: str = typer.Option("text", "--format", help="Output format [text|json]"),
):
    """Show a single post."""
    result = run_operation(lambda repository: repository.read_one(post_id))

    if not result.ok:
        fail_with(result.error)

    post = result.data

    if format == "json":
        safe_echo(json.dumps(post.to_dict(), indent=2, ensure_ascii=False))
        return

    safe_echo(post.title)
    safe_echo("=" * len(post.title))
    safe_echo(f"{post.date} · {post.category} · {post.read_time} · {post.author}")
    if post.excerpt:
        safe_echo(f"\n{post.excerpt}")
    safe_echo(f"\n{post.content}")


def update(
    post_id: str = typer.Argument(..., help="Post id (slug)"),
    title: Optional[str] = typer.Option(None, "--title", help="New title (the id does not change)"),
    content: Optional[str] = typer.Option(None, "--content", help="New content"),
    content_file: Optional[Path] = typer.Option(
        None, "--content-file", exists=True, dir_okay=False, help="Read new content from file"
    ),
    excerpt: Optional[str] = typer.Option(None, "--excerpt", help="New excerpt"),
    category: Optional[str] = typer.Option(None, "--category", help=CATEGORY_HELP),
    author: Optional[str] = typer.Option(None, "--author", help="New author"),
    read_time: Optional[str] = typer.Option(None, "--read-time", help="New read time"),
):
    """Update fields of an existing post."""
    post_update = PostUpdate(
        title=title,
        content=_read_content(content, content_file),
        excerpt=excerpt,
        category=category,
        author=author,
        read_time=read_time,
    )

    if post_update.is_empty():
        safe_echo("[WARNING] Nothing to update: pass at least one field option")
        return

    if post_update.content is not None and not post_update.content.strip():
        safe_echo("[ERROR] Content must not be empty")
        raise typer.Exit(1)

    echo_with_prefix("UPDATE", f"Updating post: {post_id}")
    result = run_operation(lambda repository: repository.update(post_id, post_update))

    if not result.ok:
        fail_with(result.error)

    safe_echo("[SUCCESS] Post updated")
    _display_post_summary(result.data)


def delete(
    post_id: str = typer.Argument(..., help="Post id (slug)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Delete a post."""
    if not yes and not typer.confirm(f"Are you sure you want to delete post '{post_id}'?"):
        safe_echo("[CANCELLED] Delete cancelled")
        return

    result = run_operation(lambda repository: repository.delete(post_id))

    if not result.ok:
        fail_with(result.error)

    safe_echo(f"[SUCCESS] Post '{post_id}' deleted")


async def _seed(repository: PostRepository) -> OperationResult[list[Post]]:
    created = []

    for sample in SAMPLE_POSTS:
        existing = await repository.read_one(generate_slug(sample.title))
        if existing.ok:
            logger.info(f"範例文章已存在，略過: {existing.data.id}")
            continue
        if existing.error.category != ErrorCategory.NOT_FOUND:
            return OperationResult.failure(existing.error)

        result = await repository.create(sample)
        if not result.ok:
            return OperationResult.failure(result.error)
        created.append(result.data)

    return OperationResult.success(created)


def seed():
    """Insert the sample posts that are not in the store yet."""
    result = run_operation(_seed)

    if not result.ok:
        fail_with(result.error)

    if not result.data:
        safe_echo("[INFO] Sample posts already present")
        return

    for post in result.data:
        safe_echo(f"[SUCCESS] Seeded: {post.id}")
