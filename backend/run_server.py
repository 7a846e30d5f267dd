# run_server.py
import uvicorn
from inventario.main import app

if __name__ == "__main__":
    # Backend API listens on 3001, where the web client expects it
    uvicorn.run(
        app,
        host="127.0.0.1",
        port=3001,
        log_level="info",
    )
