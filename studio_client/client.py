import base64
import mimetypes
import os
from pathlib import Path

import requests

from studio_client.utils.pretty_display import (
    print_border,
    print_card,
    print_info,
    print_startup_message,
    print_wizard,
)

DEFAULT_URL = os.getenv("CARD_STUDIO_URL", "http://127.0.0.1:8000")

EFFECT_CHOICES = {
    "sepia": {"type": "sepia", "value": 80},
    "grayscale": {"type": "grayscale", "value": 100},
    "blur": {"type": "blur", "value": 2},
}


def file_to_data_url(path) -> str:
    path = Path(path)
    mime = mimetypes.guess_type(path.name)[0] or "image/png"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def data_url_to_bytes(data_url: str) -> bytes:
    return base64.b64decode(data_url.split(",", 1)[-1])


class StudioClient:
    """Thin wrapper over the Card Studio HTTP API. Every call returns parsed JSON."""

    def __init__(self, base_url: str = DEFAULT_URL, session=None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _get(self, path, **params):
        response = self.session.get(f"{self.base_url}{path}", params=params or None)
        return response.json()

    def _post(self, path, payload=None):
        response = self.session.post(f"{self.base_url}{path}", json=payload)
        return response.json()

    # templates / cards

    def get_templates(self, category: str = None):
        return self._get("/templates", **({"category": category} if category else {}))

    def get_cards(self, creator_id: str = None, rarity: str = None, tag: str = None):
        params = {k: v for k, v in {"creator_id": creator_id, "rarity": rarity, "tag": tag}.items() if v}
        return self._get("/cards", **params)

    def get_card(self, card_id: str):
        return self._get(f"/cards/{card_id}")

    def create_card(self, **fields):
        return self._post("/cards", fields)

    def update_card(self, card_id: str, **fields):
        response = self.session.patch(f"{self.base_url}/cards/{card_id}", json=fields)
        return response.json()

    def delete_card(self, card_id: str):
        response = self.session.delete(f"{self.base_url}/cards/{card_id}")
        return response.json()

    def publish_card(self, card_id: str, publishing_options: dict = None, visibility: str = "public"):
        return self._post(f"/cards/{card_id}/publish", {
            "publishing_options": publishing_options or {},
            "visibility": visibility,
        })

    # images

    def upload_image(self, path):
        path = Path(path)
        return self.upload_bytes(path.read_bytes(), path.name)

    def upload_bytes(self, raw: bytes, filename: str):
        response = self.session.post(f"{self.base_url}/uploads", files={"file": (filename, raw)})
        return response.json()

    def analyze(self, image_data: str):
        return self._post("/analyze", {"imageData": image_data})

    def crop(self, image_data: str, crops: list, display_width=None, display_height=None, output_format="PNG"):
        return self._post("/crop", {
            "imageData": image_data,
            "crops": crops,
            "display_width": display_width,
            "display_height": display_height,
            "output_format": output_format,
        })

    def apply_effects(self, image_data: str, filters: list, output_format="PNG"):
        return self._post("/effects/apply", {
            "imageData": image_data,
            "filters": filters,
            "output_format": output_format,
        })

    # wizard

    def start_wizard(self, mode: str = "quick", creator_id: str = None):
        return self._post("/wizard", {"mode": mode, "creator_id": creator_id})

    def get_wizard(self, session_id: str):
        return self._get(f"/wizard/{session_id}")

    def wizard_action(self, session_id: str, action: str, payload: dict = None):
        return self._post(f"/wizard/{session_id}/{action}", payload)


def create_card_flow(client: StudioClient, creator_id: str = None):
    """Walk the wizard from the terminal."""
    mode = input("Mode (quick/guided/advanced) [quick]: ").strip() or "quick"
    state = client.start_wizard(mode, creator_id)
    if "error" in state:
        print(f"Error: {state['error']}")
        return
    sid = state["session_id"]

    # intent -> upload
    state = client.wizard_action(sid, "next")

    path = input("Path to photo: ").strip()
    if not Path(path).is_file():
        print("File not found.")
        return
    data_url = file_to_data_url(path)

    if input("Crop to card shape? (y/n): ").lower() == "y":
        try:
            x, y, w, h = (float(v) for v in input("x y width height (pixels): ").split())
        except ValueError:
            print("Expected four numbers, skipping crop.")
        else:
            cropped = client.crop(data_url, [{"x": x, "y": y, "width": w, "height": h, "type": "main"}])
            if "main" in cropped:
                data_url = cropped["main"]
            else:
                print(f"Crop failed: {cropped.get('error', cropped)}")

    effect = input("Effect (sepia/grayscale/blur, blank for none): ").strip()
    if effect in EFFECT_CHOICES:
        result = client.apply_effects(data_url, [EFFECT_CHOICES[effect]])
        if "error" in result:
            print(f"Effect failed: {result['error']}")
        else:
            data_url = result["imageData"]

    extension = data_url.split(";", 1)[0].rsplit("/", 1)[-1]
    uploaded = client.upload_bytes(data_url_to_bytes(data_url), f"card.{extension}")
    if "error" in uploaded:
        print(f"Upload failed: {uploaded['error']}")
        return
    image_url = uploaded["image_url"]
    state = client.wizard_action(sid, "photo", {"image_url": image_url})

    if input("Let AI suggest details? (y/n): ").lower() == "y":
        result = client.wizard_action(sid, "analysis", {"imageData": data_url})
        if "error" in result:
            print(f"Analysis failed: {result['error']}")
        else:
            state = result["wizard"]
            print_info(f"Suggested: {state['card']['title']} ({state['card']['rarity']})")

    while state.get("current_step") not in ("publish", "complete"):
        print_border()
        print_wizard(state)
        step = state["current_step"]
        if step == "details":
            title = input(f"Title [{state['card']['title']}]: ").strip()
            description = input("Description (blank to keep): ").strip()
            updates = {}
            if title:
                updates["title"] = title
            if description:
                updates["description"] = description
            if updates:
                client.wizard_action(sid, "fields", {"updates": updates})
        elif step == "design":
            templates = client.get_templates()["templates"]
            for i, t in enumerate(templates, start=1):
                print(f"{i}. {t['name']} ({t['category']})")
            choice = input("Template number (blank to keep): ").strip()
            if choice.isdigit() and 1 <= int(choice) <= len(templates):
                client.wizard_action(sid, "template", {"template_id": templates[int(choice) - 1]["id"]})

        result = client.wizard_action(sid, "next")
        if "error" in result:
            print(f"Error: {result['error']}")
            state = client.get_wizard(sid)
        else:
            state = result

    if input("List on marketplace? (y/n): ").lower() == "y":
        price = input("Base price (USD): ").strip()
        try:
            client.wizard_action(sid, "publishing", {"updates": {
                "marketplace_listing": True,
                "pricing": {"base_price": float(price)},
            }})
        except ValueError:
            print("Invalid price, skipping marketplace listing.")

    result = client.wizard_action(sid, "complete")
    if "error" in result:
        print(f"Error: {result['error']} {result.get('description', '')}")
        return
    print_border()
    print("Card created!")
    print_card(result["card"])
    print_border()


def main():
    client = StudioClient()
    print_border()
    print(f"Card Studio client -> {client.base_url}")
    creator_id = input("Creator id (optional): ").strip() or None

    while True:
        print_startup_message()
        choice = input("Enter choice (1-4): ").strip()
        match choice:
            case '1':
                try:
                    create_card_flow(client, creator_id)
                except requests.RequestException as e:
                    print(f"Server unreachable: {e}")
            case '2':
                response = client.get_cards(creator_id=creator_id)
                if not response.get("cards"):
                    print("  You don't have any cards yet.")
                for card in response.get("cards", []):
                    print_card(card)
            case '3':
                for t in client.get_templates().get("templates", []):
                    premium = " (premium)" if t["is_premium"] else ""
                    print(f"  {t['name']}{premium} - {t['description']}")
            case '4':
                print("Goodbye!")
                break
            case _:
                print("Invalid choice.")


if __name__ == "__main__":
    main()
