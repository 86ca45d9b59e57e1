from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


# Database Models
class ClassModel(db.Model):
    __tablename__ = 'classes'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    students = db.relationship('StudentModel', backref='class_obj', lazy=True)


class StudentModel(db.Model):
    __tablename__ = 'students'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=True)
    note1 = db.Column(db.Float, nullable=False, default=0.0, server_default='0')
    note2 = db.Column(db.Float, nullable=False, default=0.0, server_default='0')
    note3 = db.Column(db.Float, nullable=False, default=0.0, server_default='0')
