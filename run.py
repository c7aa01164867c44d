#!/usr/bin/env python3
"""
Lance l'API avec uvicorn; hôte, port et rechargement viennent de la configuration.
"""
import uvicorn
from app.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG and settings.ENVIRONMENT == "development",
        reload_excludes=[settings.UPLOAD_DIR, settings.LOG_DIR],
        # setup_logging() dans app.main remplace la configuration d'uvicorn
        log_config=None,
        use_colors=False,
    )
