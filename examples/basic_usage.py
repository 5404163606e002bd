"""Basic usage example for the Knowledge article service."""

import asyncio

from knowledge_mcp import ArticleService, KnowledgeConfig, KnowledgeError


async def main():
    """Search for articles and fetch the first hit."""

    # Reads SALESFORCE_* variables from the environment or a .env file
    config = KnowledgeConfig()
    config.validate_config()

    service = ArticleService.from_config(config)

    try:
        print("Searching articles for 'password reset'")
        print("-" * 50)
        records = await service.search_articles("password reset", limit=5)
        for record in records:
            print(f"- {record.get('Title')} ({record.get('Id')})")
        print()

        if records:
            article = await service.get_article_by_id(records[0]["Id"])
            print(f"First article: {article.get('Title')}")
            print(f"Summary: {article.get('Summary') or 'N/A'}")

    except KnowledgeError as e:
        print(f"Error ({type(e).__name__}): {e.message}")

    finally:
        await service.aclose()


if __name__ == "__main__":
    asyncio.run(main())
