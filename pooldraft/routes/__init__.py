from .drafts import drafts_bp

def register_blueprints(app):
    app.register_blueprint(drafts_bp)
