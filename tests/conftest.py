import copy
import sys

import pytest
import pytest_asyncio

from repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

SAMPLE_OBJECT_INFO = {
    "KSampler": {
        "input": {
            "required": {
                "model": ["MODEL"],
                "seed": ["INT", {"default": 0, "min": 0, "max": 0xFFFFFFFFFFFFFFFF}],
                "steps": ["INT", {"default": 20, "min": 1, "max": 100, "step": 1}],
                "cfg": ["FLOAT", {"default": 8.0, "min": 0.0, "max": 100.0, "step": 0.1}],
                "sampler_name": [["euler", "euler_ancestral", "heun"], {"tooltip": "Sampling algorithm"}],
                "scheduler": [["normal", "karras", "simple"]],
                "positive": ["CONDITIONING"],
                "negative": ["CONDITIONING"],
                "latent_image": ["LATENT"],
                "denoise": ["FLOAT", {"default": 1.0, "min": 0.0, "max": 1.0, "step": 0.01}],
            }
        },
        "output": ["LATENT"],
    },
    "CheckpointLoaderSimple": {
        "input": {"required": {"ckpt_name": [["sd15.safetensors", "sdxl.safetensors"]]}},
    },
    "CLIPTextEncode": {
        "input": {
            "required": {
                "text": ["STRING", {"multiline": True, "dynamicPrompts": True}],
                "clip": ["CLIP"],
            }
        },
    },
    "EmptyLatentImage": {
        "input": {
            "required": {
                "width": ["INT", {"default": 512, "min": 16, "max": 8192, "step": 8}],
                "height": ["INT", {"default": 512, "min": 16, "max": 8192, "step": 8}],
                "batch_size": ["INT", {"default": 1, "min": 1, "max": 4096}],
            }
        },
    },
    "LoadImage": {
        "input": {
            "required": {"image": [["example.png", "refs/portrait.png"], {"image_upload": True}]},
        },
    },
    "SaveImage": {
        "input": {
            "required": {
                "images": ["IMAGE"],
                "filename_prefix": ["STRING", {"default": "ComfyUI"}],
            },
            "hidden": {"prompt": "PROMPT", "extra_pnginfo": "EXTRA_PNGINFO"},
        },
    },
    "Sampler": {
        "input": {"required": {"resolution": ["512", "768", "1024"]}},
    },
    "ImageBlend": {
        "input": {
            "required": {"blend_factor": ["FLOAT", {"default": 0.5, "min": 0.0, "max": 1.0}]},
            "optional": {
                "invert": ["BOOLEAN", {"default": False}],
                "mode": ["COMBO", {"options": ["normal", "multiply", "screen"]}],
            },
        },
    },
}

SAMPLE_WORKFLOW = {
    "3": {
        "inputs": {
            "seed": 156680208700286,
            "steps": 20,
            "cfg": 8,
            "sampler_name": "euler",
            "scheduler": "normal",
            "denoise": 1,
            "model": ["4", 0],
            "positive": ["6", 0],
            "negative": ["7", 0],
            "latent_image": ["5", 0],
        },
        "class_type": "KSampler",
        "_meta": {"title": "KSampler"},
    },
    "4": {
        "inputs": {"ckpt_name": "sd15.safetensors"},
        "class_type": "CheckpointLoaderSimple",
        "_meta": {"title": "Load Checkpoint"},
    },
    "5": {
        "inputs": {"width": 512, "height": 512, "batch_size": 1},
        "class_type": "EmptyLatentImage",
    },
    "6": {
        "inputs": {"text": "a cat on a sofa", "clip": ["4", 1]},
        "class_type": "CLIPTextEncode",
        "_meta": {"title": "Positive Prompt"},
    },
    "7": {
        "inputs": {"text": "blurry", "clip": ["4", 1]},
        "class_type": "CLIPTextEncode",
    },
    "10": {
        "inputs": {"image": "example.png"},
        "class_type": "LoadImage",
    },
    "8": {
        "inputs": {"samples": ["3", 0], "vae": ["4", 2]},
        "class_type": "VAEDecode",
    },
    "9": {
        "inputs": {"filename_prefix": "ComfyUI", "images": ["8", 0]},
        "class_type": "SaveImage",
    },
}


@pytest.fixture
def object_info():
    return copy.deepcopy(SAMPLE_OBJECT_INFO)


@pytest.fixture
def workflow_dict():
    return copy.deepcopy(SAMPLE_WORKFLOW)


@pytest.fixture
def registry(object_info):
    from cmini_backend.features.object_info import InputRegistry

    return InputRegistry.build(object_info)


@pytest.fixture
def graph(workflow_dict):
    from cmini_backend.features.workflow import load_workflow

    return load_workflow(workflow_dict)


@pytest_asyncio.fixture
async def object_info_cache(object_info):
    from cmini_backend.features.object_info import ObjectInfoCache
    from cmini_backend.shared import Result

    calls = {"count": 0}

    async def _loader():
        calls["count"] += 1
        return Result.Ok(copy.deepcopy(object_info))

    cache = ObjectInfoCache(loader=_loader)
    cache.calls = calls  # type: ignore[attr-defined]
    yield cache
    cache.invalidate()
