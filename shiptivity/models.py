from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


class Client(db.Model):
    """A client card on the board, ranked by priority within its status lane."""
    __tablename__ = "clients"
    # No unique constraint on (status, priority): a reorder passes through
    # duplicate ranks before its transaction commits.
    __table_args__ = (db.Index("idx_clients_status_priority", "status", "priority"),)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.Text)
    description = db.Column(db.Text)
    status = db.Column(db.String(32), nullable=False)
    priority = db.Column(db.Integer, nullable=False)

    def __repr__(self):
        return f"<Client {self.id} - {self.status} - {self.priority}>"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'status': self.status,
            'priority': self.priority,
        }
