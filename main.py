"""Main entry point for running the API server"""
import uvicorn
import dotenv

dotenv.load_dotenv()

from bill_splitter.core.config import settings  # noqa: E402


def main():
    """Run the FastAPI app"""
    uvicorn.run(
        "bill_splitter.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )


if __name__ == "__main__":
    main()
