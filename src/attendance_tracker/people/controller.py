from __future__ import annotations

from flask import Flask, g

from ..common.web import admin_required, ok, request_data
from ..container import Container
from .service import PersonFields


def register(app: Flask, container: Container) -> None:
    @app.route("/people", methods=["GET"], endpoint="list_people")
    @admin_required
    def list_people():
        return ok(container.person_service.list_people())

    @app.route("/people/<int:person_id>", methods=["GET"], endpoint="get_person")
    @admin_required
    def get_person(person_id: int):
        return ok(container.person_service.get_person(person_id))

    @app.route("/people", methods=["POST"], endpoint="create_person")
    @admin_required
    def create_person():
        data = request_data()
        person = container.person_service.create_person(
            current_role=g.role,
            created_by=g.account_id,
            fields=PersonFields.from_mapping(data),
            password=data.get("password"),
        )
        return ok(person, 201)

    @app.route("/people/<int:person_id>", methods=["PUT"], endpoint="update_person")
    @admin_required
    def update_person(person_id: int):
        person = container.person_service.update_person(
            current_role=g.role,
            person_id=person_id,
            fields=PersonFields.from_mapping(request_data()),
        )
        return ok(person)

    @app.route("/people/<int:person_id>", methods=["DELETE"], endpoint="delete_person")
    @admin_required
    def delete_person(person_id: int):
        container.person_service.delete_person(current_role=g.role, person_id=person_id)
        return ok()

    @app.route("/people/<int:person_id>/email", methods=["POST"], endpoint="link_person_email")
    @admin_required
    def link_person_email(person_id: int):
        person = container.person_service.link_email(
            current_role=g.role,
            person_id=person_id,
            email=request_data().get("email", ""),
        )
        return ok(person)
