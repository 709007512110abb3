"""A small annotated application used across the tests."""

from datetime import datetime
from typing import TypedDict

from swagger_attributes.annotations import (
    openapi,
    openapi_exception,
    openapi_query_param,
    openapi_request_body,
    openapi_response,
    openapi_validation_error,
)
from swagger_attributes.collector import RouteTable
from swagger_attributes.enums import HttpMethod, OpenApiDataType
from swagger_attributes.resources import AnonymousResourceCollection, JsonResource, ResourceCollection


class User:
    """A registered user.

    Attributes:
        full_name (str): First and last name.
        settings (dict | None): Notification preferences,
            stored as JSON.
    """

    __columns__ = {
        "id": "bigint",
        "name": "varchar(255)",
        "email": "varchar(255)",
        "is_active": "boolean",
        "created_at": "timestamp",
        "settings": "jsonb",
    }
    __appends__ = ["full_name", "avatar_url"]

    def __init__(self, **fields):
        self.__dict__.update(fields)


class Post:
    __columns__ = [("id", "integer"), ("title", "text"), ("user_id", "bigint")]


class UserResource(JsonResource):
    def to_dict(self, request=None):
        return {
            "id": self.id,
            "name": self.name,
            "is_admin": False,
            "score": 0,
            "rating": 4.5,
            "nickname": None,
            "roles": [],
            "profile": {
                "bio": self.bio,
                "links": {"website": "", "followers": 0},
            },
            "articles": self.when_loaded("posts"),
        }

    def with_meta(self, request=None):
        return {"api_version": "1.0", "id": "ignored"}


class UserCollection(ResourceCollection):
    """Paginated list of users."""


class PostPayload(TypedDict):
    id: int
    title: str
    published_at: datetime | None


class PostResource(JsonResource):
    def to_dict(self, request=None) -> PostPayload:
        """Serialize a post.

        Fields:
            excerpt (str): First paragraph of the body.
        """
        return {
            "id": self.id,
            "title": self.title,
            "published_at": self.published_at,
            "excerpt": self.body[:100],
            "comment_count": 0,
        }


class PostCollection(ResourceCollection):
    collects = PostResource


class TagResource(JsonResource):
    @classmethod
    def collection(cls, resources):
        return super().collection(resources)

    def to_dict(self, request=None):
        data = {"label": self.label, "color": "#ffffff"}
        return data


class CommentResource(JsonResource):
    def to_dict(self, request=None):
        return dict(body=self.body, likes=0)


class CommentFeed(AnonymousResourceCollection):
    pass


class StoreUserRequest:
    def rules(self):
        return {
            "name": "required|string|max:255",
            "email": ["required", "email"],
            "age": "nullable|integer|min:18",
            "role": "in:admin,member",
            "tags": "array|max:5",
        }


class BrokenRequest:
    def rules(self):
        raise RuntimeError("database unavailable")


class UserController:
    @openapi(tag="Users", summary="List users")
    @openapi_response(resource=UserCollection)
    @openapi_query_param("page", type=OpenApiDataType.INTEGER, description="Page number", example=1)
    @openapi_query_param("status", enum=["active", "banned"])
    def index(self):
        pass

    @openapi(tag="Users", summary="Show user")
    @openapi_response(model=User)
    @openapi_exception(404, "User not found")
    def show(self, id):
        pass

    @openapi(tag="Users", summary="Create user", method=HttpMethod.POST)
    @openapi_request_body(request_class=StoreUserRequest)
    @openapi_response(status_code=201, description="User created", resource=UserResource, model=User)
    def store(self):
        pass

    @openapi(tag="Users", summary="Delete user", deprecated=True)
    @openapi_response(status_code=204, description="User deleted")
    def destroy(self, id):
        pass

    @openapi(tag="Users", summary="Import users", method=HttpMethod.POST)
    @openapi_request_body(request_class=BrokenRequest)
    def bulk_import(self):
        pass

    def undocumented(self):
        pass


class PostController:
    @openapi(tag="Posts", summary="List posts")
    @openapi_response(resource=PostCollection)
    def index(self):
        pass

    @openapi(tag="Posts", summary="Update post")
    @openapi_request_body(rules={"title": "required|max:120"})
    @openapi_validation_error(description="Invalid post")
    def update(self, post_id):
        pass


@openapi(tag="Tags", summary="List tags")
@openapi_response(resource=TagResource)
def list_tags():
    pass


@openapi(tag="Posts", summary="Recent comments")
@openapi_response(resource=CommentFeed)
def recent_comments():
    return CommentResource.collection([])


routes = RouteTable()
routes.add("GET", "users", UserController.index)
routes.add(["GET", "HEAD"], "users/{id}", "sample_app:UserController.show")
routes.add("POST", "users", UserController.store)
routes.add("DELETE", "users/{id}", UserController.destroy)
routes.add("POST", "users/import", UserController.bulk_import)
routes.add("GET", "internal", UserController.undocumented)
routes.add("GET", "posts", PostController.index)
routes.add(["PUT", "PATCH"], "posts/{post_id?}", PostController.update)
routes.add("GET", "tags", list_tags)
routes.add("GET", "comments/recent", recent_comments)
routes.add("GET", "health", lambda: "ok")
routes.add("GET", "broken", "sample_app:MissingController.action")
