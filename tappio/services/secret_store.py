from ..models import db, Secret


def get_secret(name: str) -> str|None:
    row = Secret.query.filter_by(name=name).first()
    return row.value if row else None


def set_secret(name: str, value: str):
    row = Secret.query.filter_by(name=name).first()
    if row is None:
        db.session.add(Secret(name=name, value=value))
    else:
        row.value = value
    db.session.commit()
