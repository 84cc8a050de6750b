"""Sample posts used to seed an empty blog."""
from ..models.post import PostCategory, PostInput

SAMPLE_POSTS: list[PostInput] = [
    PostInput(
        title="Acknowledging GitHub Copilot in My Projects",
        excerpt=(
            "How I properly credit AI assistance and collaboration in my development "
            "projects, including best practices for acknowledgements."
        ),
        category=PostCategory.AI_DEVELOPMENT.value,
        author="Developer",
        read_time="5 min read",
        content="""# Acknowledging GitHub Copilot in My Projects

As AI-assisted development becomes increasingly common, it's important to properly acknowledge the tools and technologies that help us build better software. GitHub Copilot has become an invaluable collaborator in my development workflow, and I believe in giving credit where credit is due.

## Why Acknowledgement Matters

In the spirit of open and ethical development, acknowledging AI assistance serves several important purposes:

### Transparency
Being transparent about the tools and assistance used in development helps maintain trust with users, collaborators, and the broader development community.

### Professional Integrity
Proper attribution demonstrates professional integrity and respect for the collaborative nature of modern software development.

### Educational Value
Sharing information about AI-assisted development helps others learn about these tools and their potential applications.

## How I Acknowledge Copilot

### 1. README Documentation
I include a dedicated section in my README files that acknowledges AI assistance.

### 2. Code Comments
For particularly complex or AI-suggested code blocks, I add comments.

### 3. Commit Messages
I sometimes include references to AI assistance in commit messages.

### 4. Project Metadata
In package metadata or similar files, I include acknowledgements.

## Conclusion

Acknowledging AI assistance isn't just about giving credit. It's about being part of a transparent, ethical development community.
""",
    ),
]
