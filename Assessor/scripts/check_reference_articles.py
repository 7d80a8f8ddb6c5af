from pathlib import Path
import sys

from Assessor.app.config import AppConfig
from Assessor.app.legal.parser import load_reference_articles


def main() -> None:
    if len(sys.argv) > 1:
        path = Path(sys.argv[1]).resolve()
    else:
        path = AppConfig.from_env().reference_xml_path
    articles = load_reference_articles(path)
    if not articles:
        print(f"No articles loaded from {path}")
        sys.exit(1)
    for article in articles:
        heading = f" – {article.heading}" if article.heading else ""
        print(f"{article.id}{heading} chars={len(article.text)}")
    print(f"\nTotal: {len(articles)} articles")


if __name__ == "__main__":
    main()
