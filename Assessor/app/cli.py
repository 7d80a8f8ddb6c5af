from pathlib import Path
import argparse
import json

from Assessor.app.assessment.engine import run_assessment
from Assessor.app.config import AppConfig
from Assessor.app.export.pdf_report import render_assessment_pdf
from Assessor.app.legal.parser import load_reference_articles
from Assessor.app.preprocess.extract_text import extract_text


def main() -> None:
    parser = argparse.ArgumentParser()
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text")
    source.add_argument("--input")
    parser.add_argument("--model")
    parser.add_argument("--output")
    parser.add_argument("--pdf")
    args = parser.parse_args()

    config = AppConfig.from_env(model=args.model)
    if args.input:
        user_text = extract_text(Path(args.input).resolve())
    else:
        user_text = args.text
    articles = load_reference_articles(config.reference_xml_path)

    run = run_assessment(user_text, articles, config)
    output_json = run.assessment.to_dict()
    output_json["model"] = run.model
    output_json["tokenUsage"] = run.token_usage or {}
    output_text = json.dumps(output_json, ensure_ascii=False, indent=2)

    if args.pdf:
        pdf_path = Path(args.pdf).resolve()
        pdf_path.parent.mkdir(parents=True, exist_ok=True)
        pdf_path.write_bytes(render_assessment_pdf(run.assessment, source_text=user_text))
    if args.output:
        output_path = Path(args.output).resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output_text, encoding="utf-8")
    else:
        print(output_text)


if __name__ == "__main__":
    main()
