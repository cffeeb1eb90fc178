import uuid

import pytest

from biketrails.api.context import Reply, RequestContext
from biketrails.core.errors import ConflictError, InvalidField, NotFound, OutOfRange, Unauthorized
from biketrails.models.comment import Comment
from biketrails.models.route import Route
from biketrails.models.user import User
from biketrails.services.comment_service import comment_service
from biketrails.services.route_service import route_service
from biketrails.services.user_service import user_service
from conftest import ACTIVATION_TOKEN, XSRF_TOKEN


def make_context(user=None, xsrf=True, **params):
    return RequestContext(
        method="POST",
        user_id=user.user_id if user is not None else None,
        xsrf_cookie=XSRF_TOKEN,
        xsrf_header=XSRF_TOKEN if xsrf else None,
        params=params,
    )


def sign_up_params(**overrides):
    params = {
        "user_name": "newrider",
        "user_email": "newrider@trails.org",
        "user_password": "pedal-power-42",
        "user_password_confirm": "pedal-power-42",
    }
    params.update(overrides)
    return params


def test_reply_omits_missing_message():
    assert Reply(data=[]).to_dict() == {"status": 200, "data": []}
    assert Reply(status=201, message="ok").to_dict() == {"status": 201, "data": None, "message": "ok"}


def test_sign_up_creates_pending_account(db):
    reply = user_service.sign_up(db, make_context(**sign_up_params()))
    assert reply.status == 201
    assert reply.data["userName"] == "newrider"

    user = User.get_user_by_user_name(db, "newrider")
    assert user.user_activation_token is not None
    assert user.user_hash.startswith("$argon2i$")


def test_sign_up_requires_xsrf(db):
    with pytest.raises(Unauthorized):
        user_service.sign_up(db, make_context(xsrf=False, **sign_up_params()))
    assert User.get_user_by_user_name(db, "newrider") is None


@pytest.mark.parametrize("overrides, error", [
    ({"user_password_confirm": "something-else"}, InvalidField),
    ({"user_password": None, "user_password_confirm": None}, InvalidField),
    ({"user_password": "short", "user_password_confirm": "short"}, OutOfRange),
    ({"user_email": "not-an-email"}, InvalidField),
    ({"user_name": "a" * 33}, OutOfRange),
])
def test_sign_up_rejects_bad_input(db, overrides, error):
    with pytest.raises(error):
        user_service.sign_up(db, make_context(**sign_up_params(**overrides)))


@pytest.mark.parametrize("overrides", [
    {"user_email": "fresh@trails.org"},
    {"user_name": "fresh"},
])
def test_sign_up_duplicate_is_a_conflict(db, make_user, overrides):
    make_user("taken")
    params = sign_up_params(user_name="taken", user_email="taken@trails.org")
    params.update(overrides)
    with pytest.raises(ConflictError):
        user_service.sign_up(db, make_context(**params))


def test_activation_clears_token(db, make_user):
    user = make_user("pending", activation_token=ACTIVATION_TOKEN)
    reply = user_service.activate(db, make_context(activation=ACTIVATION_TOKEN))
    assert reply.message == "Thank you for activating your account"
    assert User.get_user_by_user_id(db, user.user_id).user_activation_token is None

    # A second click on the same link finds nothing
    with pytest.raises(NotFound):
        user_service.activate(db, make_context(activation=ACTIVATION_TOKEN))


def test_activation_with_malformed_token(db):
    with pytest.raises(OutOfRange):
        user_service.activate(db, make_context(activation="xyz"))


def test_get_user(db, make_user):
    user = make_user()
    assert user_service.get_user(db, make_context(user_id=str(user.user_id))).data == user.to_dict()
    with pytest.raises(NotFound):
        user_service.get_user(db, make_context(user_id=str(uuid.uuid4())))


def test_update_own_account_only(db, make_user):
    rider, other = make_user("rider"), make_user("other")
    reply = user_service.update_user(db, make_context(rider, user_id=str(rider.user_id), user_name="rider2"))
    assert reply.data["userName"] == "rider2"

    with pytest.raises(Unauthorized):
        user_service.update_user(db, make_context(other, user_id=str(rider.user_id), user_name="hijack"))
    with pytest.raises(Unauthorized):
        user_service.update_user(db, make_context(None, user_id=str(rider.user_id), user_name="anon"))
    assert User.get_user_by_user_id(db, rider.user_id).user_name == "rider2"


def test_delete_user_removes_their_comments(db, make_user, make_route, make_comment):
    rider, other = make_user("rider"), make_user("other")
    route = make_route()
    make_comment(route, rider)
    kept = make_comment(route, other)

    user_service.delete_user(db, make_context(rider, user_id=str(rider.user_id)))
    assert User.get_user_by_user_id(db, rider.user_id) is None
    remaining = Comment.get_comments_by_comment_route_id(db, route.route_id)
    assert [comment.comment_id for comment in remaining] == [kept.comment_id]


def test_create_route_requires_signed_in_user(db, make_user):
    params = {
        "route_name": "Paseo del Norte",
        "route_description": "Bike lane along the arroyo",
        "route_file": "routes/paseo.json",
        "route_speed_limit": 25,
        "route_type": "bike-lane",
    }
    with pytest.raises(Unauthorized):
        route_service.create_route(db, make_context(None, **params))

    reply = route_service.create_route(db, make_context(make_user(), **params))
    assert reply.status == 201
    assert reply.data["routeType"] == "bike-lane"
    assert Route.get_route_by_route_id(db, reply.data["routeId"]).route_name == "Paseo del Norte"


def test_list_routes_filters_by_type(db, make_route):
    make_route("Bosque Trail")
    make_route("Foothills", "unpaved")
    assert len(route_service.list_routes(db, make_context()).data) == 2
    unpaved = route_service.list_routes(db, make_context(route_type="unpaved")).data
    assert [route["routeName"] for route in unpaved] == ["Foothills"]


def test_update_route_changes_only_given_fields(db, make_user, make_route):
    route = make_route()
    reply = route_service.update_route(
        db, make_context(make_user(), route_id=str(route.route_id), route_speed_limit=20, route_name=None)
    )
    assert reply.data["routeSpeedLimit"] == 20
    assert reply.data["routeName"] == "Bosque Trail"


def test_delete_route_with_comments_is_refused(db, make_user, make_route, make_comment):
    user = make_user()
    route = make_route()
    make_comment(route, user)
    with pytest.raises(ConflictError) as excinfo:
        route_service.delete_route(db, make_context(user, route_id=str(route.route_id)))
    assert "comments" in excinfo.value.message
    db.rollback()

    empty = make_route("Foothills")
    route_service.delete_route(db, make_context(user, route_id=str(empty.route_id)))
    assert Route.get_route_by_route_id(db, empty.route_id) is None


def test_comments_with_user_names(db, make_user, make_route, make_comment):
    route = make_route()
    make_comment(route, make_user("second"), "later", 1700000100000)
    make_comment(route, make_user("first"), "earlier", 1700000000000)

    entries = comment_service.get_comments_and_users_by_route_id(db, route.route_id)
    assert [(entry["userName"], entry["commentContent"]) for entry in entries] == [
        ("first", "earlier"),
        ("second", "later"),
    ]
    assert entries[0]["commentDate"] == 1700000000000


def test_list_comments_requires_route_id(db):
    with pytest.raises(InvalidField):
        comment_service.list_comments(db, make_context())


def test_create_comment(db, make_user, make_route):
    user, route = make_user(), make_route()
    reply = comment_service.create_comment(
        db,
        make_context(user, comment_route_id=str(route.route_id), comment_content="Smooth", comment_date=1700000000000),
    )
    assert reply.status == 201
    assert reply.data["commentUserId"] == str(user.user_id)
    assert reply.data["commentDate"] == 1700000000000


def test_create_comment_needs_user_and_existing_route(db, make_user, make_route):
    route = make_route()
    with pytest.raises(Unauthorized):
        comment_service.create_comment(
            db, make_context(None, comment_route_id=str(route.route_id), comment_content="Smooth")
        )
    with pytest.raises(NotFound):
        comment_service.create_comment(
            db, make_context(make_user(), comment_route_id=str(uuid.uuid4()), comment_content="Smooth")
        )


def test_only_the_author_may_change_a_comment(db, make_user, make_route, make_comment):
    author, other = make_user("author"), make_user("other")
    comment = make_comment(make_route(), author)
    comment_id = str(comment.comment_id)

    with pytest.raises(Unauthorized):
        comment_service.update_comment(db, make_context(other, comment_id=comment_id, comment_content="edited"))
    with pytest.raises(Unauthorized):
        comment_service.delete_comment(db, make_context(other, comment_id=comment_id))

    reply = comment_service.update_comment(db, make_context(author, comment_id=comment_id, comment_content="edited"))
    assert reply.data["commentContent"] == "edited"
    assert reply.data["commentDate"] == 1700000000000

    comment_service.delete_comment(db, make_context(author, comment_id=comment_id))
    assert Comment.get_comment_by_comment_id(db, comment_id) is None
