import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "py" / "src"))

from requestsim import FlashHash, RenderMetadata, RouteSet, create_test_harness  # noqa: E402


class PostsController:
    controller_path = "posts"

    def process(self, request, response):
        action = request.parameters["action"]
        if action == "create":
            request.session["flash"] = FlashHash({"notice": "created"})
            response.status = "302 Found"
            response.headers = {"location": ["http://test.host/posts/1"]}
            response.redirected_to = {"action": "show", "id": 1}
            return
        post_id = request.path_parameters["id"]
        response.status = "200 OK"
        response.headers = {}
        response.redirected_to = None
        response.body = f"<h1>Post {post_id}</h1>"
        response.template = RenderMetadata("posts/show", {"post": {"id": post_id}})


def main() -> None:
    routes = RouteSet()
    routes.add("/posts/:id", name="post", controller="posts", action="show")
    routes.add("/:controller/:action")

    harness = create_test_harness(PostsController(), routes=routes)

    resp = harness.post("create", {"post": {"title": "hello"}})
    assert resp.redirect
    assert resp.redirect_url_match(r"/posts/\d+")
    assert harness.flash == {"notice": "created"}
    assert harness.request.request_parameters == {"post": {"title": "hello"}}

    resp = harness.follow_redirect()
    assert resp.success
    assert resp.rendered_file() == "posts/show"
    assert harness.assigns("post") == {"id": 1}
    assert harness.find_tag(tag="h1").text == "Post 1"
    assert harness.post_path(id=2) == "/posts/2"

    print("examples/testkit/py.py: PASS")


if __name__ == "__main__":
    main()
