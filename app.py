"""
Greenhouse Monitoring Dashboard
Application Entry Point

This file serves as the entry point for the Flask application.
It uses the application factory pattern defined in the greenhouse package.
"""

import logging

from greenhouse import create_app

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

# Create the Flask application using the factory
app = create_app()

if __name__ == '__main__':
    # The reloader would start a second background scheduler
    app.run(debug=True, host='0.0.0.0', port=5000, use_reloader=False)
