"""Blog: controllers, layouts and action caching with perch.

Demonstrates automapped controllers, action templates, a site layout
declared once on an abstract base controller, a feed that opts out of
the layout, and a cached archive page invalidated from another action.

Run:
    perch routes app:app
    perch check app:app
"""

from dataclasses import dataclass
from pathlib import Path

from perch import App, AppConfig, CacheHelper, Controller, Registry, Template

TEMPLATES_DIR = Path(__file__).parent / "templates"

registry = Registry()


@dataclass(frozen=True, slots=True)
class Post:
    id: int
    title: str
    body: str


POSTS: dict[int, Post] = {
    1: Post(1, "Hello", "The first post."),
    2: Post(2, "Layouts", "Every page shares one layout."),
}


class Site(Controller, registry=registry, abstract=True):
    """Every page on the site is wrapped in the site layout."""


Site.layout("/layouts/site")


class Main(Site):
    def index(self):
        return {"posts": sorted(POSTS.values(), key=lambda p: p.id)}

    def about(self):
        return "A tiny blog."


class Blog(CacheHelper, Site):
    def show(self, id):
        return {"post": POSTS[int(id)]}

    def archive(self):
        return Template("blog/archive.html", count=len(POSTS))

    def feed(self):
        return "\n".join(f"{p.id}: {p.title}" for p in POSTS.values())

    def publish(self, title):
        post_id = max(POSTS) + 1
        POSTS[post_id] = Post(post_id, title, "")
        self.action_cache.delete(self.r(Blog, "archive"))
        return self.a(title, "show", post_id)


Blog.deny_layout("feed", "publish")
Blog.cache("archive")

app = App(AppConfig(template_dir=TEMPLATES_DIR), registry=registry)
