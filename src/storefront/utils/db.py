from protean.domain import Domain
from sqlalchemy import create_engine

RDBMS_PROVIDERS = ("sqlite", "postgresql")


def _register_tables(domain: Domain, provider) -> None:
    # Touching ``_dao`` makes Protean build the SQLAlchemy model for the
    # element, which is what puts its table into ``provider._metadata``.
    for registry in (domain.registry.aggregates, domain.registry.entities):
        for _, record in registry.items():
            if record.cls.meta_.provider == provider.name:
                domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain):
    """Create tables for every relational provider of the domain."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in RDBMS_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])
                _register_tables(domain, provider)
                provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop every table of the domain's relational providers."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in RDBMS_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])
                _register_tables(domain, provider)
                provider._metadata.drop_all(engine)
