"""语音输入输出

一次性语音转文字 + 文字转语音，都是尽力而为：
没有麦克风、音频后端或 TTS 引擎时只记录警告，调用方退回到文本输入。
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

import pyttsx3
import speech_recognition as sr

from .logger import logger
from .models import Action

PROMPTS = {
    "analyze": "Analyzing the screen to identify interactive elements...",
    "planning": "I've identified the elements. Here's my action plan:",
    "executing": "Now executing each step with visual confirmation...",
    "complete": "Workflow complete! I've generated the Playwright script and execution logs.",
    "error": "I encountered an issue. Let me try again.",
}


def describe_actions(actions: Sequence[Action]) -> str:
    steps = ". ".join(f"Step {i}: {a.description}" for i, a in enumerate(actions, start=1))
    return f"I have {len(actions)} steps planned. {steps}"


class VoiceIO:
    """语音服务"""

    def __init__(self, language: str = "en-US", timeout: float = 5, phrase_time_limit: float = 10):
        self.language = language
        self.timeout = timeout
        self.phrase_time_limit = phrase_time_limit
        self._engine = None
        self._tts_failed = False
        # pyttsx3 引擎只能在创建它的线程里使用
        self._tts_thread = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tts")

    def _listen_blocking(self) -> Optional[str]:
        recognizer = sr.Recognizer()
        try:
            # 没有安装 PyAudio 时 Microphone() 会抛 AttributeError
            with sr.Microphone() as source:
                recognizer.adjust_for_ambient_noise(source)
                logger.info("🎤 正在聆听...")
                audio = recognizer.listen(source, timeout=self.timeout, phrase_time_limit=self.phrase_time_limit)
            text = recognizer.recognize_google(audio, language=self.language)
        except (sr.WaitTimeoutError, sr.UnknownValueError):
            logger.info("未识别到语音")
            return None
        except sr.RequestError as e:
            logger.warning(f"语音识别服务错误: {e}")
            return None
        except (AttributeError, OSError) as e:
            logger.warning(f"语音输入不可用，请使用文本输入: {e}")
            return None

        text = text.strip()
        logger.info(f"USER: {text}")
        return text or None

    async def listen(self) -> Optional[str]:
        """听一次，返回识别出的文本；任何失败都返回 None"""
        return await asyncio.to_thread(self._listen_blocking)

    def _get_engine(self):
        if self._engine is None and not self._tts_failed:
            try:
                self._engine = pyttsx3.init()
            except (RuntimeError, OSError, ImportError) as e:
                self._tts_failed = True
                logger.warning(f"语音输出不可用: {e}")
        return self._engine

    def _speak_blocking(self, text: str) -> bool:
        engine = self._get_engine()
        if engine is None:
            return False
        try:
            engine.say(text)
            engine.runAndWait()
            return True
        except (RuntimeError, OSError) as e:
            logger.warning(f"语音输出失败: {e}")
            return False

    async def speak(self, text: str) -> bool:
        logger.info(f"ASSISTANT: {text}")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._tts_thread, self._speak_blocking, text)

    async def speak_prompt(self, name: str) -> bool:
        return await self.speak(PROMPTS[name])

    async def speak_actions(self, actions: Sequence[Action]) -> bool:
        return await self.speak(describe_actions(actions))

    def close(self) -> None:
        self._tts_thread.shutdown(wait=False)
