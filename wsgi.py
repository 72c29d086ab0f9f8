# ==============================================================================
# WSGI Entry Point - For Gunicorn in production
# ==============================================================================
# USAGE:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# PROJECT STRUCTURE:
#   repo_root/           <- Working directory (on sys.path automatically)
#   ├── wsgi.py          <- This file
#   ├── pyproject.toml
#   └── fastbills/       <- Python package
#       ├── main.py
#       ├── services/
#       └── repositories/
#
# Configuration comes from FASTBILLS_* environment variables
# (see fastbills/config.py).
# ==============================================================================

from fastbills.main import create_app

app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
