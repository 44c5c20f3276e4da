from ..resources import (
    blp_eligibility_rule,
    blp_order_admin,
    blp_allowance,
)


def register_routes(app, api):
    blueprints = [
        blp_eligibility_rule,
        blp_order_admin,
        blp_allowance,
    ]

    for blueprint in blueprints:
        api.register_blueprint(blueprint, url_prefix="/api/v1")

    # Root route
    @app.route('/')
    def index():
        return {"message": "Welcome to the Uniform Eligibility API"}
