import os

from PyPDF2 import PdfReader

from confportal.app import db
from confportal.models import User
from manage import gen_cert, gen_sample_cert, seed_admin


def _runner(app):
    for command in (gen_cert, gen_sample_cert, seed_admin):
        app.cli.add_command(command)
    return app.test_cli_runner()


def test_seed_admin_creates_and_promotes(app):
    runner = _runner(app)
    res = runner.invoke(args=["seed_admin", "--email", "Chair@BioMedix.com"])
    assert res.exit_code == 0
    user = User.query.filter_by(email="chair@biomedix.com").one()
    assert user.role == "admin" and user.approved is True


def test_gen_cert_archives_pdf(app):
    user = User(email="j@example.com", first_name="Jane", last_name="Doe", approved=True)
    db.session.add(user)
    db.session.commit()
    runner = _runner(app)
    res = runner.invoke(args=["gen_cert", "--user-id", str(user.id)])
    assert res.exit_code == 0
    path = res.output.split()[0]
    assert path.endswith(os.path.join(str(user.id), "BioMedix2025_Certificate_Doe_Jane.pdf"))
    assert path.startswith(app.config["SITE_ROOT"])
    assert "sha256=" in res.output
    assert len(PdfReader(path).pages) == 1


def test_gen_cert_unknown_user(app):
    res = _runner(app).invoke(args=["gen_cert", "--user-id", "42"])
    assert "Not found" in res.output


def test_gen_sample_cert(app, tmp_path):
    out = tmp_path / "sample.pdf"
    res = _runner(app).invoke(
        args=["gen_sample_cert", "--name", "Alexandra Maria Konstantinopoulos", "--out", str(out)]
    )
    assert res.exit_code == 0
    assert out.is_file()
